"""
Command handling: keeps the application state and drives probe, selection and merge.
"""

import os
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from core import config
from core.bundle import find_tool
from core.logger import Logger, LogLevel
from core.signal_handler import SignalHandler
from merger import (
    AudioStream, LogEvent, MergeOrchestrator, MergeRequest, MergeState, MergerError,
    NoneAvailable, ProbeError, Selected, SelectionRequired,
    build_merge_command, list_audio_streams, resolve_choice, select,
)


@dataclass
class AppState:
    """Everything the interactive session knows; only the interactive thread touches it."""
    video_path: Optional[str] = None
    audio_path: Optional[str] = None
    output_path: Optional[str] = None
    audio_tracks: List[AudioStream] = field(default_factory=list)
    selection: Any = None
    selected_track: Optional[int] = None
    keep_video_audio: Optional[str] = None
    logs: List[str] = field(default_factory=list)
    show_logs: bool = False


class CommandHandler:
    def __init__(self, logger: Optional[Logger] = None, orchestrator: Optional[MergeOrchestrator] = None):
        self.logger = logger or Logger()
        self.state = AppState(keep_video_audio=config.KEEP_VIDEO_AUDIO_LANGUAGE or None)
        self.orchestrator = orchestrator or MergeOrchestrator(self.logger)
        self.last_status: Optional[str] = None
        self._merge_output: List[str] = []

    @property
    def is_merging(self) -> bool:
        return self.orchestrator.is_running

    def append_log(self, message: str, level: LogLevel = LogLevel.INFO):
        """Append a message to the on-screen history and the log file."""
        self.state.logs.append(message)
        self.logger.log(level, message)

    def _check_file(self, path: str, kind: str, extensions) -> Optional[str]:
        path = (path or "").strip().strip('"')
        if not path or not os.path.isfile(path):
            self.append_log(f"Error: {kind} file not found: {path}", LogLevel.ERROR)
            return None
        if os.path.splitext(path)[1].lower() not in extensions:
            self.append_log(f"Warning: {os.path.basename(path)} does not look like a {kind.lower()} file", LogLevel.WARNING)
        return path

    def set_video(self, path: str) -> bool:
        path = self._check_file(path, "Video", config.VIDEO_EXTENSIONS)
        if path is None:
            return False
        self.state.video_path = path
        self.append_log(f"Video selected: {path}")
        return True

    def set_audio(self, path: str, preferred_language: Optional[str] = None):
        """Select the external file, probe it and try to pick a track automatically.

        Returns the selection outcome, or None when the file is missing.
        """
        path = self._check_file(path, "Audio", config.AUDIO_EXTENSIONS)
        if path is None:
            return None
        self.state.audio_path = path
        self.state.selected_track = None
        self.append_log(f"Audio selected: {path}")

        try:
            tracks = list_audio_streams(path, self.logger)
        except ProbeError as e:
            self.append_log(f"Error: {e}", LogLevel.ERROR)
            tracks = []
        self.state.audio_tracks = tracks

        preferred = config.PREFERRED_LANGUAGE if preferred_language is None else preferred_language
        outcome = select(tracks, preferred)
        self.state.selection = outcome
        if isinstance(outcome, Selected):
            self.state.selected_track = outcome.stream.stream_index
            if len(tracks) == 1:
                self.append_log(f"Auto-selected the only audio track, index {outcome.stream.stream_index}.")
            else:
                self.append_log(f"Auto-selected '{outcome.stream.language}' track index {outcome.stream.stream_index}.")
        elif isinstance(outcome, NoneAvailable):
            self.append_log("Warning: No audio streams found in that file.", LogLevel.WARNING)
        elif preferred:
            self.append_log(f"No unique '{preferred}' track found; please pick one from the list.")
        else:
            self.append_log("Several audio tracks found; please pick one from the list.")
        return outcome

    def choose_track(self, index: int) -> bool:
        if self.state.selection is None:
            self.append_log("Error: Please select an audio file first.", LogLevel.ERROR)
            return False
        try:
            chosen = resolve_choice(self.state.selection, index)
        except SelectionRequired as e:
            self.append_log(f"Error: {e}", LogLevel.ERROR)
            return False
        self.state.selected_track = chosen
        self.append_log(f"Audio track index {chosen} chosen.")
        return True

    def set_output(self, path: str) -> Optional[str]:
        path = (path or "").strip().strip('"')
        if not path:
            self.append_log("Error: No output path given.", LogLevel.ERROR)
            return None
        if not os.path.splitext(path)[1]:
            path += config.OUTPUT_EXTENSION
        parent = os.path.dirname(os.path.abspath(path))
        if not os.path.isdir(parent):
            self.append_log(f"Error: Output folder does not exist: {parent}", LogLevel.ERROR)
            return None
        if os.path.exists(path):
            self.append_log(f"Warning: {path} exists and will be overwritten.", LogLevel.WARNING)
        self.state.output_path = path
        self.append_log(f"Output selected: {path}")
        return path

    def build_request(self) -> MergeRequest:
        return MergeRequest(
            video_path=self.state.video_path or "",
            external_media_path=self.state.audio_path or "",
            output_path=self.state.output_path or "",
            chosen_stream_index=self.state.selected_track,
            video_audio_language=self.state.keep_video_audio or None,
        )

    def merge_command(self) -> List[str]:
        """The ffmpeg command the current state would run, for dry runs."""
        request = self.build_request()
        if request.chosen_stream_index is None:
            raise SelectionRequired("Please pick an audio track first")
        return build_merge_command(find_tool("ffmpeg", config.FFMPEG_PATH), request)

    def start_merge(self) -> bool:
        streams = self.state.audio_tracks if self.state.audio_path else None
        try:
            self.orchestrator.start(self.build_request(), streams=streams)
        except MergerError as e:
            self.last_status = str(e)
            self.append_log(f"Error: {e}", LogLevel.ERROR)
            return False
        self.last_status = None
        self._merge_output = []
        return True

    def poll(self) -> List[LogEvent]:
        """Drain the merge channel once; never blocks."""
        events = self.orchestrator.drain()
        for event in events:
            if not event.is_terminal:
                self._merge_output.append(event.text)
                self.append_log(event.text, LogLevel.FFMPEG)
                continue
            self.last_status = event.text
            output = self.orchestrator.request.output_path if self.orchestrator.request else ""
            if event.success:
                self.append_log(event.text or "Merge completed successfully!", LogLevel.SUCCESS)
            else:
                self.append_log(event.text or "Merge failed.", LogLevel.ERROR)
                if output and os.path.exists(output):
                    self.append_log(f"Warning: {output} may be incomplete.", LogLevel.WARNING)
            self.logger.log_ffmpeg("MERGE", output, "\n".join(self._merge_output))
        return events

    def wait_for_merge(self, on_events: Optional[Callable[[List[LogEvent]], None]] = None, poll_interval: Optional[float] = None) -> MergeState:
        """Poll the channel on a fixed cadence until the merge ends, then acknowledge it."""
        interval = poll_interval if poll_interval is not None else config.POLL_INTERVAL
        # Ctrl+C cancels the merge instead of ending the program.
        SignalHandler.register_interrupt(self.cancel_merge)
        try:
            while self.orchestrator.state == MergeState.RUNNING:
                events = self.poll()
                if on_events and events:
                    on_events(events)
                if self.orchestrator.state == MergeState.RUNNING:
                    time.sleep(interval)
        finally:
            SignalHandler.unregister_interrupt(self.cancel_merge)
        self.append_log("Merge thread finished.")
        return self.orchestrator.acknowledge()

    def cancel_merge(self) -> bool:
        if self.orchestrator.cancel():
            self.append_log("Cancelling merge...", LogLevel.WARNING)
            return True
        return False

    def handle_merge(self, video: str, audio: str, output: str, track: Optional[int] = None,
                     language: Optional[str] = None, dry_run: bool = False,
                     on_events: Optional[Callable[[List[LogEvent]], None]] = None) -> List[Dict[str, Any]]:
        """One-shot merge used by the command-line flags."""
        result = {"file": output, "task": "Merge audio", "status": "Failed"}
        if not (self.set_video(video) and self.set_audio(audio, language) is not None and self.set_output(output)):
            result["message"] = "Invalid input paths"
            return [result]
        result["file"] = self.state.output_path
        if track is not None and not self.choose_track(track):
            result["message"] = f"Track {track} is not available"
            return [result]

        if dry_run:
            try:
                command = self.merge_command()
            except MergerError as e:
                result["message"] = str(e)
                return [result]
            self.append_log("Dry run: " + " ".join(command))
            result.update({"status": "Success", "message": "Dry Run"})
            return [result]

        if not self.start_merge():
            result["message"] = self.last_status or "Merge not started"
            return [result]
        final = self.wait_for_merge(on_events=on_events)
        if final == MergeState.SUCCEEDED:
            result["status"] = "Success"
        else:
            result["message"] = self.last_status or "Merge failed"
        return [result]

    def list_tracks(self, path: str) -> List[AudioStream]:
        try:
            return list_audio_streams(path, self.logger)
        except ProbeError as e:
            self.logger.error(str(e))
            return []
