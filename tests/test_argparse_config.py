import sys
from pathlib import Path

repo_root = Path(__file__).resolve().parents[1]
src_path = str(repo_root / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

import pytest
from cli.argparse_config import parse_args


def test_no_arguments_means_interactive(monkeypatch):
    monkeypatch.setattr(sys, 'argv', ['audio_merger.py'])
    assert parse_args() is None
    assert parse_args([]) is None


def test_merge_flags():
    args = parse_args(['-v', 'movie.mp4', '-a', 'dub.mka', '-o', 'out.mkv', '-t', '2', '--lang', 'eng', '--dry-run'])
    assert (args.video, args.audio, args.output) == ('movie.mp4', 'dub.mka', 'out.mkv')
    assert args.track == 2
    assert args.lang == 'eng'
    assert args.dry_run is True
    assert args.keep_video_audio is None
    assert args.duplicate_policy is None


def test_keep_video_audio_and_policy():
    args = parse_args(['--video', 'a.mp4', '--audio', 'b.mka', '--output', 'c.mkv',
                       '--keep-video-audio', 'eng', '--duplicate-policy', 'ask'])
    assert args.keep_video_audio == 'eng'
    assert args.duplicate_policy == 'ask'


def test_invalid_duplicate_policy_rejected():
    with pytest.raises(SystemExit):
        parse_args(['--duplicate-policy', 'last'])


def test_list_tracks_alone():
    args = parse_args(['--list-tracks', 'dub.mka'])
    assert args.list_tracks == 'dub.mka'


def test_list_tracks_with_merge_flags_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        parse_args(['--list-tracks', 'dub.mka', '--video', 'movie.mp4'])
    assert exc.value.code == 1
    assert 'cannot be combined' in capsys.readouterr().out


@pytest.mark.parametrize("argv", [
    ['--video', 'movie.mp4'],
    ['--video', 'movie.mp4', '--audio', 'dub.mka'],
    ['--output', 'out.mkv'],
])
def test_partial_merge_flags_exit(argv, capsys):
    with pytest.raises(SystemExit) as exc:
        parse_args(argv)
    assert exc.value.code == 1
    assert 'required together' in capsys.readouterr().out


def test_negative_track_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        parse_args(['-v', 'a.mp4', '-a', 'b.mka', '-o', 'c.mkv', '--track', '-1'])
    assert exc.value.code == 1
    assert 'non-negative' in capsys.readouterr().out
