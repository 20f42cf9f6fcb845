"""Value types shared by the prober, selector and orchestrator."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class AudioStream:
    stream_index: int
    language_tag: str = ""

    @property
    def language(self) -> str:
        """Language tag for display, `unknown` when ffprobe reported none."""
        return self.language_tag or "unknown"

    def label(self) -> str:
        return f"Index {self.stream_index} ({self.language})"


@dataclass(frozen=True)
class MergeRequest:
    video_path: str
    external_media_path: str
    output_path: str
    chosen_stream_index: Optional[int] = None
    # Keep the video's own audio track in this language; None drops it.
    video_audio_language: Optional[str] = None

    def missing_fields(self):
        names = []
        if not self.video_path:
            names.append("video")
        if not self.external_media_path:
            names.append("audio")
        if not self.output_path:
            names.append("output")
        return names


@dataclass(frozen=True)
class LogEvent:
    """One message on the merge log channel.

    `success` is None for an ordinary output line. The last event of a merge
    carries True/False and may hold the failure detail in `text`.
    """
    text: Optional[str] = None
    success: Optional[bool] = None

    @property
    def is_terminal(self) -> bool:
        return self.success is not None


class MergeState(Enum):
    IDLE = "Idle"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
