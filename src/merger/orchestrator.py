"""
Runs one ffmpeg merge at a time on a background thread and reports its output
through a queue the interactive side drains.
"""

import threading
from dataclasses import replace
from queue import Empty, Queue
from typing import List, Optional, Sequence
from core import config
from core.bundle import find_tool
from core.logger import Logger
from core.signal_handler import SignalHandler
from . import runner
from .errors import (
    AlreadyRunningError, IncompleteRequest, MergerError, NoAudioStreams,
    ProcessError, SelectionRequired,
)
from .models import AudioStream, LogEvent, MergeRequest, MergeState
from .probe import find_audio_stream, list_audio_streams


def build_merge_command(ffmpeg: str, request: MergeRequest, video_audio_index: Optional[int] = None, loglevel: Optional[str] = None) -> List[str]:
    """ffmpeg command copying the video stream and the chosen external audio stream into the output."""
    command = [
        ffmpeg,
        "-hide_banner",
        "-loglevel", loglevel or config.FFMPEG_LOGLEVEL,
        "-y",
        "-i", request.video_path,
        "-i", request.external_media_path,
        "-map", "0:v:0",
    ]
    if video_audio_index is not None:
        command.extend(["-map", f"0:{video_audio_index}"])
    command.extend([
        "-map", f"1:{request.chosen_stream_index}",
        "-c", "copy",
        request.output_path,
    ])
    return command


class MergeOrchestrator:
    def __init__(self, logger: Optional[Logger] = None):
        self.logger = logger or Logger()
        self._state = MergeState.IDLE
        self._channel: Optional[Queue] = None
        self._thread: Optional[threading.Thread] = None
        self._request: Optional[MergeRequest] = None
        self._process = None
        self._process_lock = threading.Lock()
        self._cancelled = threading.Event()

    @property
    def state(self) -> MergeState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == MergeState.RUNNING

    @property
    def request(self) -> Optional[MergeRequest]:
        return self._request

    def _validate(self, request: MergeRequest, streams: Optional[Sequence[AudioStream]]) -> MergeRequest:
        missing = request.missing_fields()
        if missing:
            raise IncompleteRequest(f"Please select the {', '.join(missing)} file first")
        if streams is not None:
            if not streams:
                raise NoAudioStreams("The external file has no audio stream to merge")
            indices = [s.stream_index for s in streams]
            if request.chosen_stream_index is None and len(indices) == 1:
                request = replace(request, chosen_stream_index=indices[0])
            elif request.chosen_stream_index is not None and request.chosen_stream_index not in indices:
                raise SelectionRequired(f"Stream index {request.chosen_stream_index} is not an audio stream of {request.external_media_path}")
        if request.chosen_stream_index is None:
            raise SelectionRequired("Please pick an audio track first")
        return request

    def start(self, request: MergeRequest, streams: Optional[Sequence[AudioStream]] = None) -> Queue:
        """Validate `request` and start the merge in the background.

        `streams` is the probe result for the external file; when given, the
        chosen index is checked against it and auto-filled for a single stream.
        Returns the channel the worker writes LogEvents to.
        """
        if self._state == MergeState.RUNNING:
            raise AlreadyRunningError("Merge is already in progress.")
        if self._state != MergeState.IDLE:
            raise MergerError("The previous merge result has not been acknowledged yet.")

        request = self._validate(request, streams)
        ffmpeg = find_tool("ffmpeg", config.FFMPEG_PATH)
        loglevel = config.FFMPEG_LOGLEVEL

        channel: Queue = Queue()
        self._cancelled.clear()
        thread = threading.Thread(
            target=self._worker,
            args=(request, ffmpeg, loglevel, channel),
            name="merge-worker",
            daemon=True,
        )
        self._request = request
        self._channel = channel
        self._thread = thread
        self._state = MergeState.RUNNING
        SignalHandler.register_partial_output(request.output_path)
        self.logger.info(f"Starting merge with external audio index {request.chosen_stream_index}...")
        thread.start()
        return channel

    def _attach(self, process):
        with self._process_lock:
            self._process = process
        SignalHandler.register_child_pid(process.pid)
        if self._cancelled.is_set():
            process.terminate()

    def _detach(self):
        with self._process_lock:
            process, self._process = self._process, None
        if process is not None:
            SignalHandler.unregister_child_pid(process.pid)

    def _video_audio_index(self, request: MergeRequest, emit) -> Optional[int]:
        language = request.video_audio_language
        emit(f"ffprobe: searching for '{language}' in video...")
        streams = list_audio_streams(request.video_path)
        match = find_audio_stream(streams, language)
        if match is not None:
            emit(f"Found '{language}' at index {match.stream_index}.")
            return match.stream_index
        if streams:
            emit(f"No '{language}' in video; keeping its first audio stream (index {streams[0].stream_index}).")
            return streams[0].stream_index
        emit("Video has no audio stream to keep.")
        return None

    def _worker(self, request: MergeRequest, ffmpeg: str, loglevel: str, channel: Queue):
        def emit(text: str):
            channel.put(LogEvent(text=text))

        try:
            video_audio_index = None
            if request.video_audio_language:
                video_audio_index = self._video_audio_index(request, emit)
            command = build_merge_command(ffmpeg, request, video_audio_index, loglevel)
            for line in runner.run(command[0], command[1:], on_start=self._attach):
                if line.strip():
                    emit(line)
        except ProcessError as e:
            if self._cancelled.is_set():
                channel.put(LogEvent(text="Merge cancelled.", success=False))
            else:
                channel.put(LogEvent(text=f"ffmpeg exited with code {e.returncode}.", success=False))
            return
        except MergerError as e:
            channel.put(LogEvent(text=f"Error: {e}", success=False))
            return
        except Exception as e:
            channel.put(LogEvent(text=f"Unexpected error: {e}", success=False))
            return
        finally:
            self._detach()
        channel.put(LogEvent(text="Merge completed successfully!", success=True))

    def drain(self) -> List[LogEvent]:
        """Collect every pending LogEvent without blocking.

        Seeing the terminal event moves the state to SUCCEEDED or FAILED.
        """
        events: List[LogEvent] = []
        if self._channel is None or self._state != MergeState.RUNNING:
            return events
        while True:
            try:
                event = self._channel.get_nowait()
            except Empty:
                break
            events.append(event)
            if event.is_terminal:
                self._state = MergeState.SUCCEEDED if event.success else MergeState.FAILED
                SignalHandler.unregister_partial_output(self._request.output_path)
                break
        return events

    def acknowledge(self) -> MergeState:
        """Return to IDLE once the caller has seen the terminal event."""
        finished = self._state
        if finished in (MergeState.SUCCEEDED, MergeState.FAILED):
            self._state = MergeState.IDLE
            self._channel = None
            self._thread = None
        return finished

    def cancel(self) -> bool:
        """Terminate the running ffmpeg child; the merge then ends as FAILED."""
        if self._state != MergeState.RUNNING:
            return False
        self._cancelled.set()
        with self._process_lock:
            process = self._process
            if process is not None and process.poll() is None:
                process.terminate()
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker thread has finished. Not for the interactive loop."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()
