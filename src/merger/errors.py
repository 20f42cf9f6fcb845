"""Exceptions raised by the probing and merging helpers."""


class MergerError(Exception):
    """Base class for every recoverable merger failure."""


class SpawnError(MergerError):
    """The executable is missing or could not be started."""

    def __init__(self, executable: str, reason: str = ""):
        self.executable = executable
        self.reason = reason
        message = f"Unable to run {executable}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ProcessError(MergerError):
    """The child process exited with a non-zero code."""

    def __init__(self, executable: str, returncode: int, output: str = ""):
        self.executable = executable
        self.returncode = returncode
        self.output = output
        super().__init__(f"{executable} exited with code {returncode}")


class ProbeError(MergerError):
    """ffprobe failed or printed nothing that could be read as a stream listing."""


class AlreadyRunningError(MergerError):
    """A merge is already in flight on this orchestrator."""


class IncompleteRequest(MergerError):
    """A merge was requested before the video, audio and output paths were all set."""


class SelectionRequired(MergerError):
    """No audio track could be chosen without asking the user."""


class NoAudioStreams(SelectionRequired):
    """The external file has no audio stream at all."""
