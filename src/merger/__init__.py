"""
Audio track discovery, selection and the background ffmpeg merge.
"""

from .errors import (
    MergerError, SpawnError, ProcessError, ProbeError, AlreadyRunningError,
    IncompleteRequest, SelectionRequired, NoAudioStreams,
)
from .models import AudioStream, MergeRequest, LogEvent, MergeState
from .probe import list_audio_streams, parse_stream_listing, find_audio_stream
from .selector import select, resolve_choice, NoneAvailable, Selected, AmbiguousRequiresUserChoice
from .orchestrator import MergeOrchestrator, build_merge_command

__all__ = [
    "MergerError", "SpawnError", "ProcessError", "ProbeError", "AlreadyRunningError",
    "IncompleteRequest", "SelectionRequired", "NoAudioStreams",
    "AudioStream", "MergeRequest", "LogEvent", "MergeState",
    "list_audio_streams", "parse_stream_listing", "find_audio_stream",
    "select", "resolve_choice", "NoneAvailable", "Selected", "AmbiguousRequiresUserChoice",
    "MergeOrchestrator", "build_merge_command",
]
