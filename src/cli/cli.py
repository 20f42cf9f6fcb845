"""
Terminal UI for the audio merger.
"""

import os
import shutil
import sys
from typing import List, Optional
from rich.console import Console, Group
from rich.table import Table
from rich import box
from rich.padding import Padding
from rich.align import Align
from rich.text import Text
from rich.columns import Columns
from rich.panel import Panel
from rich.live import Live
from rich.spinner import Spinner
from core import config
from core.bundle import get_bundled_executable
from merger import AudioStream, LogEvent, MergeState


class AudioMergerCLI:
    LIVE_LINES = 12

    def __init__(self, command_handler, console: Optional[Console] = None):
        self.console = console or Console()
        self.command_handler = command_handler

    def _ffmpeg_found(self) -> bool:
        if config.FFMPEG_PATH:
            return os.path.isfile(config.FFMPEG_PATH)
        return bool(get_bundled_executable("ffmpeg") or shutil.which("ffmpeg"))

    def _status_panel(self) -> Padding:
        state = self.command_handler.state
        table = Table.grid(padding=(0, 1))
        table.add_column(justify="right", style="bold grey50")
        table.add_column(justify="left", style="white")
        table.add_row("Video", state.video_path or "[dim]not selected[/dim]")
        table.add_row("Audio", state.audio_path or "[dim]not selected[/dim]")
        if state.selected_track is not None:
            track = next((t for t in state.audio_tracks if t.stream_index == state.selected_track), None)
            table.add_row("Track", track.label() if track else f"Index {state.selected_track}")
        else:
            table.add_row("Track", "[dim]none[/dim]")
        table.add_row("Output", state.output_path or "[dim]not selected[/dim]")
        table.add_row("Keep video audio", state.keep_video_audio or "[dim]no[/dim]")
        ffmpeg = "[dim green]Found[/dim green]" if self._ffmpeg_found() else "[red]Not found[/red]"
        table.add_row("FFmpeg", ffmpeg)
        table.add_row("Preferred language", config.PREFERRED_LANGUAGE or "[dim]none[/dim]")
        return Padding(
            Group(Align.center(Text("Current Merge", style="dim wheat1")), Padding(table, (0, 2))),
            (0, 0, 1, 0),
        )

    def display_menu(self):
        """Display the main menu next to the current selection."""
        state = self.command_handler.state
        menu_table = Table(
            box=box.ROUNDED,
            pad_edge=True,
            show_lines=True,
            style="bold white",
            expand=True,
            border_style="dim white",
        )
        menu_table.add_column("[bold grey42]Option[/bold grey42]", justify="center", style="wheat1", width=8)
        menu_table.add_column("[bold grey42]Description[/bold grey42]", justify="left", style="white")
        menu_table.add_row("[1]", "Select [bold bright_blue]video[/bold bright_blue] file")
        menu_table.add_row("[2]", "Select [bold bright_blue]audio[/bold bright_blue] or dubbed-video file")
        if state.audio_tracks and len(state.audio_tracks) > 1:
            menu_table.add_row("[3]", "Choose audio stream")
        else:
            menu_table.add_row("[3]", "[dim]Choose audio stream[/dim]")
        menu_table.add_row("[4]", "Select [bold bright_blue]output[/bold bright_blue] file")
        menu_table.add_row("[5]", "[bold green]Start merge[/bold green]")
        menu_table.add_row("[6]", "Hide logs" if state.show_logs else "Show logs")
        menu_table.add_row("[7]", "[bold red]Exit[/bold red]")

        title_text = Text("Audio Merger", style="bold bright_white", justify="center")
        subtitle = Text(f"v{config.VERSION}", style="dim", justify="center")

        terminal_cols = shutil.get_terminal_size(fallback=(80, 24)).columns
        menu_width = min(60, max(36, int(terminal_cols * 0.35)))

        grid = Table.grid(expand=False)
        grid.add_column(width=menu_width)
        grid.add_column(ratio=1)
        grid.add_row(Align.left(menu_table, vertical="top", width=menu_width), self._status_panel())
        self.console.print(Group(Align.center(title_text), Padding(Align.center(subtitle), (0, 0, 1, 0)), grid))
        if state.show_logs:
            self.display_logs()

    def display_logs(self, limit: int = 200):
        logs = self.command_handler.state.logs[-limit:]
        body = Text("\n".join(logs) if logs else "No log messages yet", style="dim")
        self.console.print(Panel(body, title="Logs", border_style="dim white"))

    def display_tracks(self, tracks: List[AudioStream], selected: Optional[int] = None):
        """Print the probed audio streams as a table."""
        if not tracks:
            self.console.print("[bold yellow]No audio streams found[/bold yellow]")
            return
        table = Table(box=box.SIMPLE_HEAD, header_style="bold grey42")
        table.add_column("Index", justify="right", style="wheat1")
        table.add_column("Language", style="white")
        table.add_column("", style="green")
        for t in tracks:
            table.add_row(str(t.stream_index), t.language, "selected" if t.stream_index == selected else "")
        self.console.print(table)

    def prompt_track(self) -> Optional[int]:
        """Ask for a stream index among the probed tracks; None if the answer is unusable."""
        state = self.command_handler.state
        self.display_tracks(state.audio_tracks, state.selected_track)
        answer = self.console.input("[bold wheat1]Enter stream index: [/bold wheat1]").strip()
        try:
            return int(answer)
        except ValueError:
            self.command_handler.logger.error("Stream index must be a number")
            return None

    def _render_merge(self, spinner: Spinner, lines: List[str]) -> Panel:
        text = "\n".join(lines[-self.LIVE_LINES:])
        return Panel(Group(spinner, Text(text, style="dim")), title="Merging", border_style="green")

    def run_merge(self) -> bool:
        """Start the merge and show its output until it finishes."""
        handler = self.command_handler
        if not handler.start_merge():
            return False
        lines: List[str] = []
        spinner = Spinner("dots", text=Text.from_markup("[bold green]Merging in progress...[/bold green]"), style="green")
        handler.logger.quiet = True
        try:
            with Live(self._render_merge(spinner, lines), console=self.console, refresh_per_second=10) as live:
                def on_events(events: List[LogEvent]):
                    lines.extend(e.text for e in events if e.text)
                    live.update(self._render_merge(spinner, lines))
                try:
                    final = handler.wait_for_merge(on_events=on_events)
                except KeyboardInterrupt:
                    handler.cancel_merge()
                    final = handler.wait_for_merge(on_events=on_events)
        finally:
            handler.logger.quiet = False
        succeeded = final == MergeState.SUCCEEDED
        self.display_status(succeeded)
        return succeeded

    def display_status(self, succeeded: bool):
        message = self.command_handler.last_status or ("Merge completed" if succeeded else "Merge failed")
        self.console.print(Align.center(Text(message, style="bold green" if succeeded else "bold red")))

    def _wait_for_resume_or_exit(self):
        """Wait for a single keypress: Enter to resume, Esc to exit."""
        def _get_single_key():
            try:
                import msvcrt
                return msvcrt.getwch()
            except Exception:
                import tty
                import termios
                fd = sys.stdin.fileno()
                old = termios.tcgetattr(fd)
                try:
                    tty.setraw(fd)
                    return sys.stdin.read(1)
                finally:
                    termios.tcsetattr(fd, termios.TCSADRAIN, old)

        prompt = Text.assemble(("Press ", "dim"), ("[Enter]", "bold"), (" to continue", "dim"), (" • ", "dim"), ("Press ", "dim"), ("[Esc]", "bold"), (" to close", "dim"))
        self.console.print("")
        self.console.print(Align.center(prompt))
        while True:
            ch = _get_single_key()
            if ch in ("\r", "\n"):
                return "enter"
            if ch == "\x1b":
                return "esc"

    def display_results(self, results: list):
        """Display one panel per merge with a summary line."""
        if not results:
            self.console.print("[bold yellow]No results to display[/bold yellow]")
            return
        succeeded = sum(1 for r in results if r.get("status") == "Success")
        failed = len(results) - succeeded

        summary = Text.assemble((f"{succeeded}", "bold green"), (" succeeded ", "dim"), ("• ", "dim"), (f"{failed}", "bold red"), (" failed", "dim"))
        self.console.rule("[bold cyan]Merge Complete[/bold cyan]")
        self.console.print(Align.center(summary))

        panels = []
        for r in results:
            status = r.get("status", "")
            status_color = "green" if status == "Success" else "red"
            body = Text()
            body.append(f"{r.get('task', '')}\n", style="bold white")
            body.append(status + "\n", style=status_color)
            if r.get("message"):
                body.append("\n")
                body.append(r["message"], style="dim")
            panels.append(Panel(body, title=os.path.basename(r.get("file") or ""), border_style=status_color, padding=(1, 2)))
        self.console.print(Columns(panels, equal=True, expand=True))
