"""
Helpers for locating the ffmpeg/ffprobe executables shipped next to the program.
"""

import os
import shutil
import sys
from typing import List, Optional


def _program_dirs() -> List[str]:
    """Directories the program runs from, most specific first."""
    dirs = []
    if getattr(sys, "frozen", False):
        dirs.append(getattr(sys, "_MEIPASS", os.path.dirname(sys.executable)))
        dirs.append(os.path.dirname(sys.executable))
    launcher = sys.argv[0] if sys.argv and sys.argv[0] else ""
    if launcher:
        dirs.append(os.path.dirname(os.path.abspath(launcher)))
    seen = []
    for d in dirs:
        if d and d not in seen:
            seen.append(d)
    return seen


def get_bundled_executable(exe_name: str) -> Optional[str]:
    """Return the path of `exe_name` if it sits alongside the running program."""
    try:
        for base in _program_dirs():
            candidate = os.path.join(base, exe_name)
            if os.path.isfile(candidate):
                return candidate
            if not candidate.lower().endswith('.exe') and os.path.isfile(candidate + '.exe'):
                return candidate + '.exe'
    except Exception:
        pass
    return None


def find_tool(name: str, override: str = "") -> str:
    """Resolve a tool: explicit override, bundled copy, then PATH.

    Falls back to the bare name so the caller gets a spawn error naming it.
    """
    if override:
        return override
    bundled = get_bundled_executable(name)
    if bundled:
        return bundled
    return shutil.which(name) or name
