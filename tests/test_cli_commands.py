import sys
from pathlib import Path

repo_root = Path(__file__).resolve().parents[1]
src_path = str(repo_root / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

import signal
import threading
import pytest
from rich.console import Console
from core import config
from core.logger import Logger
from core.signal_handler import SignalHandler
from cli import commands
from cli.commands import CommandHandler
from merger import orchestrator as orch_module
from merger.errors import ProbeError, ProcessError
from merger.models import AudioStream, MergeState
from merger.selector import AmbiguousRequiresUserChoice, NoneAvailable, Selected


@pytest.fixture
def handler(tmp_path, monkeypatch):
    monkeypatch.setattr(config, 'PREFERRED_LANGUAGE', 'por')
    monkeypatch.setattr(config, 'DUPLICATE_LANGUAGE_POLICY', 'first')
    monkeypatch.setattr(config, 'KEEP_VIDEO_AUDIO_LANGUAGE', '')
    monkeypatch.setattr(config, 'FFMPEG_PATH', '')
    monkeypatch.setattr(config, 'OUTPUT_EXTENSION', '.mkv')
    monkeypatch.setattr(orch_module, 'find_tool', lambda name, override="": '/tools/' + name)
    monkeypatch.setattr(commands, 'find_tool', lambda name, override="": '/tools/' + name)
    logger = Logger(log_file="app.log", log_dir=str(tmp_path / "logs"), console=Console(record=True))
    return CommandHandler(logger=logger)


@pytest.fixture
def media(tmp_path):
    video = tmp_path / "movie.mp4"
    audio = tmp_path / "dub.mka"
    video.write_bytes(b"v")
    audio.write_bytes(b"a")
    return str(video), str(audio)


def _tracks(monkeypatch, tracks):
    monkeypatch.setattr(commands, 'list_audio_streams', lambda path, logger=None: list(tracks))


def _runner(monkeypatch, lines, returncode=0):
    def fake_run(executable, args, on_start=None):
        for line in lines:
            yield line
        if returncode:
            raise ProcessError(executable, returncode, "")
    monkeypatch.setattr(orch_module.runner, 'run', fake_run)


def test_set_video_missing_and_unexpected_extension(handler, tmp_path):
    assert handler.set_video(str(tmp_path / "nope.mp4")) is False
    assert handler.state.video_path is None
    assert "Video file not found" in handler.state.logs[-1]

    odd = tmp_path / "clip.txt"
    odd.write_text("x")
    assert handler.set_video(f'"{odd}"') is True
    assert handler.state.video_path == str(odd)
    assert any("does not look like a video file" in m for m in handler.state.logs)


def test_set_audio_auto_selects_preferred_language(handler, media, monkeypatch):
    _tracks(monkeypatch, [AudioStream(1, "eng"), AudioStream(2, "por")])
    outcome = handler.set_audio(media[1])
    assert outcome == Selected(AudioStream(2, "por"))
    assert handler.state.selected_track == 2
    assert "Auto-selected 'por' track index 2." in handler.state.logs


def test_set_audio_single_track(handler, media, monkeypatch):
    _tracks(monkeypatch, [AudioStream(4, "")])
    handler.set_audio(media[1])
    assert handler.state.selected_track == 4
    assert "Auto-selected the only audio track, index 4." in handler.state.logs


def test_set_audio_ambiguous_and_choose_track(handler, media, monkeypatch):
    _tracks(monkeypatch, [AudioStream(1, "eng"), AudioStream(2, "jpn")])
    outcome = handler.set_audio(media[1])
    assert isinstance(outcome, AmbiguousRequiresUserChoice)
    assert handler.state.selected_track is None
    assert "No unique 'por' track found; please pick one from the list." in handler.state.logs

    assert handler.choose_track(9) is False
    assert handler.state.selected_track is None
    assert handler.choose_track(2) is True
    assert handler.state.selected_track == 2


def test_set_audio_explicit_language_overrides_config(handler, media, monkeypatch):
    _tracks(monkeypatch, [AudioStream(1, "eng"), AudioStream(2, "jpn")])
    assert handler.set_audio(media[1], "jpn") == Selected(AudioStream(2, "jpn"))


def test_set_audio_probe_failure_means_no_tracks(handler, media, monkeypatch):
    def fail(path, logger=None):
        raise ProbeError("ffprobe could not read dub.mka")

    monkeypatch.setattr(commands, 'list_audio_streams', fail)
    assert handler.set_audio(media[1]) == NoneAvailable()
    assert handler.state.audio_tracks == []
    assert any("ffprobe could not read" in m for m in handler.state.logs)
    assert handler.choose_track(0) is False


def test_choose_track_without_audio(handler):
    assert handler.choose_track(1) is False
    assert "select an audio file first" in handler.state.logs[-1]


def test_set_output_adds_extension_and_checks_folder(handler, tmp_path, monkeypatch):
    monkeypatch.setattr(config, 'OUTPUT_EXTENSION', '.mkv')
    assert handler.set_output(str(tmp_path / "result")) == str(tmp_path / "result.mkv")
    assert handler.set_output(str(tmp_path / "missing" / "out.mkv")) is None
    assert handler.set_output("  ") is None

    existing = tmp_path / "old.mkv"
    existing.write_bytes(b"")
    assert handler.set_output(str(existing)) == str(existing)
    assert any("will be overwritten" in m for m in handler.state.logs)


def test_start_merge_reports_incomplete_request(handler):
    assert handler.start_merge() is False
    assert "Please select the video, audio, output file first" == handler.last_status
    assert handler.orchestrator.state == MergeState.IDLE


def test_merge_command_uses_state(handler, media, monkeypatch, tmp_path):
    _tracks(monkeypatch, [AudioStream(1, "por")])
    handler.set_video(media[0])
    handler.set_audio(media[1])
    handler.set_output(str(tmp_path / "out.mkv"))
    cmd = handler.merge_command()
    assert cmd[0] == '/tools/ffmpeg'
    assert cmd[-1] == str(tmp_path / "out.mkv")
    assert '1:1' in cmd


def test_handle_merge_success(handler, media, monkeypatch, tmp_path):
    _tracks(monkeypatch, [AudioStream(1, "eng"), AudioStream(2, "por")])
    _runner(monkeypatch, ["Output #0, matroska"])
    seen = []

    results = handler.handle_merge(media[0], media[1], str(tmp_path / "out"), on_events=seen.extend)
    assert results == [{"file": str(tmp_path / "out.mkv"), "task": "Merge audio", "status": "Success"}]
    assert seen[-1].success is True
    assert "Merge thread finished." in handler.state.logs
    assert handler.orchestrator.state == MergeState.IDLE

    debug = tmp_path / "logs" / config.LOG_FFMPEG_DEBUG
    assert "Output #0, matroska" in debug.read_text(encoding="utf-8")


def test_handle_merge_failure_reports_exit_code(handler, media, monkeypatch, tmp_path):
    _tracks(monkeypatch, [AudioStream(1, "por")])
    _runner(monkeypatch, ["No such filter"], returncode=1)
    output = tmp_path / "out.mkv"
    output.write_bytes(b"partial")

    results = handler.handle_merge(media[0], media[1], str(output))
    assert results[0]["status"] == "Failed"
    assert results[0]["message"] == "ffmpeg exited with code 1."
    assert "No such filter" in handler.state.logs
    assert "| FFMPEG | No such filter" in Path(handler.logger.log_file).read_text(encoding="utf-8")
    assert any("may be incomplete" in m for m in handler.state.logs)


def test_handle_merge_explicit_track_and_dry_run(handler, media, monkeypatch, tmp_path):
    _tracks(monkeypatch, [AudioStream(1, "eng"), AudioStream(2, "jpn")])

    def no_run(*a, **k):
        raise AssertionError("dry run must not start ffmpeg")

    monkeypatch.setattr(orch_module.runner, 'run', no_run)
    results = handler.handle_merge(media[0], media[1], str(tmp_path / "out.mkv"), track=2, dry_run=True)
    assert results[0]["status"] == "Success"
    assert results[0]["message"] == "Dry Run"
    dry = [m for m in handler.state.logs if m.startswith("Dry run: ")]
    assert dry and "1:2" in dry[0]


def test_handle_merge_rejects_unknown_track_and_missing_choice(handler, media, monkeypatch, tmp_path):
    _tracks(monkeypatch, [AudioStream(1, "eng"), AudioStream(2, "jpn")])
    results = handler.handle_merge(media[0], media[1], str(tmp_path / "out.mkv"), track=7)
    assert results[0]["message"] == "Track 7 is not available"

    results = handler.handle_merge(media[0], media[1], str(tmp_path / "out.mkv"), dry_run=True)
    assert results[0]["status"] == "Failed"
    assert "pick an audio track" in results[0]["message"]


def test_handle_merge_invalid_paths(handler, tmp_path):
    results = handler.handle_merge(str(tmp_path / "a.mp4"), str(tmp_path / "b.mka"), str(tmp_path / "c.mkv"))
    assert results[0]["status"] == "Failed"
    assert results[0]["message"] == "Invalid input paths"


def test_keep_video_audio_passed_to_request(handler, media, monkeypatch, tmp_path):
    handler.state.keep_video_audio = "eng"
    handler.state.video_path, handler.state.audio_path = media
    handler.state.output_path = str(tmp_path / "out.mkv")
    handler.state.selected_track = 3
    request = handler.build_request()
    assert request.video_audio_language == "eng"
    assert request.chosen_stream_index == 3


def test_cancel_without_merge(handler):
    assert handler.cancel_merge() is False


def test_list_tracks_handles_probe_error(handler, monkeypatch):
    monkeypatch.setattr(commands, 'list_audio_streams', lambda path, logger=None: [AudioStream(0, "eng")])
    assert handler.list_tracks("x.mkv") == [AudioStream(0, "eng")]

    def fail(path, logger=None):
        raise ProbeError("bad")

    monkeypatch.setattr(commands, 'list_audio_streams', fail)
    assert handler.list_tracks("x.mkv") == []
    assert "bad" in Path(handler.logger.log_file).read_text(encoding="utf-8")


def test_interrupt_during_one_shot_merge_fails_it(handler, media, monkeypatch, tmp_path):
    monkeypatch.setattr(signal, 'signal', lambda *a, **k: None)
    monkeypatch.setattr(SignalHandler, '_global_instance', None)
    installed = SignalHandler(logger=handler.logger)
    _tracks(monkeypatch, [AudioStream(1, "por")])
    stopped = threading.Event()

    class Child:
        pid = 4242
        returncode = None

        def poll(self):
            return self.returncode

        def terminate(self):
            self.returncode = -15
            stopped.set()

    def fake_run(executable, args, on_start=None):
        on_start(Child())
        yield "frame=1"
        while installed.interrupt_callback is None:
            stopped.wait(0.01)
        installed._signal_handler(signal.SIGINT, None)
        stopped.wait(5)
        raise ProcessError(executable, -15, "")

    monkeypatch.setattr(orch_module.runner, 'run', fake_run)
    results = handler.handle_merge(media[0], media[1], str(tmp_path / "out.mkv"))
    assert results[0]["status"] == "Failed"
    assert results[0]["message"] == "Merge cancelled."
    assert "Cancelling merge..." in handler.state.logs
    assert installed.interrupt_callback is None
