"""
Argument parsing for the audio merger.
"""

import sys
import argparse
from core import config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Merge an external audio track into a video without re-encoding")

    parser.add_argument("-v", "--video", type=str, metavar="PATH", help="Video file whose video stream is kept")
    parser.add_argument("-a", "--audio", type=str, metavar="PATH", help="Audio or dubbed-video file providing the new audio track")
    parser.add_argument("-o", "--output", type=str, metavar="PATH", help=f"Output file (default extension {config.OUTPUT_EXTENSION}); overwritten if it exists")
    parser.add_argument("-t", "--track", type=int, default=None, metavar="INDEX", help="Stream index of the audio track to merge (see --list-tracks)")
    parser.add_argument(
        "--lang",
        type=str,
        default=None,
        help=f"Preferred audio language tag used to auto-select a track (default: {config.PREFERRED_LANGUAGE or 'none'})",
    )
    parser.add_argument(
        "--keep-video-audio",
        type=str,
        default=None,
        metavar="LANG",
        help="Also keep the video's own audio track in this language (falls back to its first audio track)",
    )
    parser.add_argument(
        "--duplicate-policy",
        choices=config.DUPLICATE_LANGUAGE_POLICIES,
        default=None,
        help="When several tracks share the preferred language: take the first one or ask",
    )
    parser.add_argument("--list-tracks", type=str, metavar="PATH", help="List the audio streams of a file and exit")
    parser.add_argument("--dry-run", action="store_true", help="Show the ffmpeg command without running it")
    return parser


def parse_args(argv=None):
    """Parse command-line arguments; None means interactive mode."""
    if argv is None:
        argv = sys.argv[1:]
    args = build_parser().parse_args(argv)

    if not argv:
        return None

    merge_flags = [args.video, args.audio, args.output]
    if args.list_tracks:
        if any(merge_flags):
            print("Error: --list-tracks cannot be combined with --video/--audio/--output")
            sys.exit(1)
        return args

    if any(merge_flags) and not all(merge_flags):
        print("Error: --video, --audio and --output are required together")
        sys.exit(1)

    if args.track is not None and args.track < 0:
        print("Error: --track must be a non-negative stream index")
        sys.exit(1)

    return args
