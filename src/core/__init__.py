"""Core utilities package (config, logger, tool lookup, signal handling)."""
from . import config
from .logger import Logger, LogLevel
from .signal_handler import SignalHandler
from .bundle import find_tool, get_bundled_executable

__all__ = ["config", "Logger", "LogLevel", "SignalHandler", "find_tool", "get_bundled_executable"]
