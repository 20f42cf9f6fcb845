"""
CLI package exposing the terminal UI, command handler and argument parsing.
"""

from .cli import AudioMergerCLI
from .argparse_config import parse_args
from .commands import AppState, CommandHandler

__all__ = ["AudioMergerCLI", "parse_args", "AppState", "CommandHandler"]
