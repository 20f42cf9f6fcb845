"""
Top-level launcher for the Audio Merger.

Run this from the project root:

    python audio_merger.py

With no arguments an interactive menu opens. For a one-shot merge:

    python audio_merger.py --video movie.mp4 --audio dub.mka --output movie.mkv
"""

import os
import sys
import ctypes

if getattr(sys, "frozen", False) and os.name == "nt":
    try:
        kernel32 = ctypes.windll.kernel32
        if not kernel32.GetConsoleWindow():
            kernel32.AllocConsole()
        try:
            kernel32.SetConsoleOutputCP(65001)
            kernel32.SetConsoleTitleW("Audio Merger")
        except Exception:
            pass
        sys.stdout = open("CONOUT$", "w", encoding="utf-8", errors="replace")
        sys.stderr = open("CONOUT$", "w", encoding="utf-8", errors="replace")
        sys.stdin = open("CONIN$", "r", encoding="utf-8", errors="replace")
    except Exception:
        pass

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from cli import parse_args, AudioMergerCLI, CommandHandler
from core import config
from core.signal_handler import SignalHandler


def run_interactive(cli: AudioMergerCLI, handler: CommandHandler):
    """Run the interactive menu loop."""
    state = handler.state
    while True:
        cli.display_menu()
        choice = cli.console.input("[bold wheat1]Enter choice: [/bold wheat1]").strip()
        if choice == "1":
            handler.set_video(cli.console.input("[bold wheat1]Video file path: [/bold wheat1]"))
        elif choice == "2":
            handler.set_audio(cli.console.input("[bold wheat1]Audio or dubbed-video file path: [/bold wheat1]"))
            if len(state.audio_tracks) > 1:
                cli.display_tracks(state.audio_tracks, state.selected_track)
        elif choice == "3":
            if len(state.audio_tracks) < 2:
                handler.logger.warning("Nothing to choose: select an audio file with several tracks first")
                continue
            index = cli.prompt_track()
            if index is not None:
                handler.choose_track(index)
        elif choice == "4":
            handler.set_output(cli.console.input("[bold wheat1]Output file path: [/bold wheat1]"))
        elif choice == "5":
            cli.run_merge()
            if sys.stdin.isatty() and cli._wait_for_resume_or_exit() == "esc":
                break
        elif choice == "6":
            state.show_logs = not state.show_logs
        elif choice == "7":
            handler.logger.info("Exiting...")
            break
        else:
            handler.logger.error("Invalid choice")


def main():
    """Main entry point for the audio merger."""
    args = parse_args()
    handler = CommandHandler()
    cli = AudioMergerCLI(handler)
    SignalHandler(logger=handler.logger)
    handler.logger.info("Application started.")

    if args is not None:
        if args.duplicate_policy:
            config.DUPLICATE_LANGUAGE_POLICY = args.duplicate_policy
        if args.lang is not None:
            config.PREFERRED_LANGUAGE = args.lang
        if args.keep_video_audio:
            handler.state.keep_video_audio = args.keep_video_audio

    if args is None or not (args.video or args.list_tracks):
        run_interactive(cli, handler)
        return

    if args.list_tracks:
        cli.display_tracks(handler.list_tracks(args.list_tracks))
        return

    results = handler.handle_merge(args.video, args.audio, args.output, track=args.track, dry_run=args.dry_run)
    cli.display_results(results)
    if any(r.get("status") != "Success" for r in results):
        sys.exit(1)


if __name__ == "__main__":
    main()
