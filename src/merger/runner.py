"""
ffmpeg/ffprobe command execution helpers.
"""

import os
import subprocess
from collections import deque
from typing import Callable, Iterator, List, Optional, Sequence
from .errors import ProcessError, SpawnError


def _creation_flags() -> int:
    """Keep Windows from flashing a console window for every child."""
    if os.name == "nt":
        return getattr(subprocess, "CREATE_NO_WINDOW", 0x08000000)
    return 0


def _command(executable: str, args: Sequence[str]) -> List[str]:
    return [executable] + [str(a) for a in args]


def run_command(executable: str, args: Sequence[str]) -> subprocess.CompletedProcess:
    """Run a command to completion with stdout and stderr captured separately."""
    command = _command(executable, args)
    try:
        result = subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding='utf-8',
            errors='replace',
            creationflags=_creation_flags(),
        )
    except OSError as e:
        raise SpawnError(executable, str(e)) from e
    if result.returncode != 0:
        raise ProcessError(executable, result.returncode, (result.stderr or "").strip())
    return result


def popen(executable: str, args: Sequence[str]) -> subprocess.Popen:
    """Start a process with stderr folded into stdout for live consumption."""
    command = _command(executable, args)
    try:
        return subprocess.Popen(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding='utf-8',
            errors='replace',
            creationflags=_creation_flags(),
        )
    except OSError as e:
        raise SpawnError(executable, str(e)) from e


def run(executable: str, args: Sequence[str], on_start: Optional[Callable[[subprocess.Popen], None]] = None, tail_lines: int = 20) -> Iterator[str]:
    """Yield the output lines of a child process as they are produced.

    Raises ProcessError after the last line when the exit code is non-zero;
    the last `tail_lines` lines are attached to it.
    """
    process = popen(executable, args)
    if on_start:
        on_start(process)
    tail = deque(maxlen=tail_lines)
    try:
        if process.stdout is not None:
            for line in process.stdout:
                line = line.rstrip("\r\n")
                tail.append(line)
                yield line
        process.wait()
    finally:
        if process.poll() is None:
            process.kill()
            process.wait()
        if process.stdout is not None:
            process.stdout.close()
    if process.returncode != 0:
        raise ProcessError(executable, process.returncode, "\n".join(tail))
