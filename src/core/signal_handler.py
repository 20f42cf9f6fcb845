"""
Signal handler that stops running ffmpeg children and removes unfinished outputs.
"""

import os
import sys
import signal
import threading
from typing import Callable, List, Optional
from .logger import Logger


class SignalHandler:
    _global_instance = None

    def __init__(self, partial_outputs: Optional[List[str]] = None, logger: Optional[Logger] = None):
        self.partial_outputs = partial_outputs if partial_outputs is not None else []
        self.logger = logger or Logger()
        # Reentrant: the handler may run on the main thread while it holds the lock.
        self.cleanup_lock = threading.RLock()
        self.child_pids: List[int] = []
        self.interrupt_callback: Optional[Callable[[], bool]] = None

        SignalHandler._global_instance = self

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, sig, frame):
        callback = self.interrupt_callback
        if sig == signal.SIGINT and callback is not None and callback():
            return
        self.logger.info("Program interrupted. Stopping merge and cleaning up...")
        with self.cleanup_lock:
            for pid in list(self.child_pids):
                try:
                    os.kill(pid, signal.SIGTERM)
                    self.logger.info(f"Sent SIGTERM to pid {pid}")
                except Exception as e:
                    self.logger.error(f"Failed to kill pid {pid}: {e}")
        self.cleanup_partial_outputs()
        sys.exit(0)

    def cleanup_partial_outputs(self):
        """Remove output files whose merge never finished."""
        with self.cleanup_lock:
            for path in list(self.partial_outputs):
                if os.path.exists(path):
                    try:
                        os.remove(path)
                        self.logger.info(f"Removed unfinished output: {path}")
                    except Exception as e:
                        self.logger.error(f"Failed to remove {path}: {e}")
            self.partial_outputs.clear()

    @classmethod
    def register_partial_output(cls, path: str):
        if cls._global_instance:
            with cls._global_instance.cleanup_lock:
                if path not in cls._global_instance.partial_outputs:
                    cls._global_instance.partial_outputs.append(path)

    @classmethod
    def unregister_partial_output(cls, path: str):
        if cls._global_instance:
            with cls._global_instance.cleanup_lock:
                if path in cls._global_instance.partial_outputs:
                    cls._global_instance.partial_outputs.remove(path)

    @classmethod
    def register_child_pid(cls, pid: int):
        if cls._global_instance:
            with cls._global_instance.cleanup_lock:
                if pid not in cls._global_instance.child_pids:
                    cls._global_instance.child_pids.append(pid)

    @classmethod
    def unregister_child_pid(cls, pid: int):
        if cls._global_instance:
            with cls._global_instance.cleanup_lock:
                if pid in cls._global_instance.child_pids:
                    cls._global_instance.child_pids.remove(pid)

    @classmethod
    def register_interrupt(cls, callback: Callable[[], bool]):
        """Route SIGINT to `callback` instead of shutting down.

        The callback returns True when it handled the interrupt; otherwise
        the usual cleanup and exit follow.
        """
        if cls._global_instance:
            cls._global_instance.interrupt_callback = callback

    @classmethod
    def unregister_interrupt(cls, callback: Callable[[], bool]):
        if cls._global_instance and cls._global_instance.interrupt_callback == callback:
            cls._global_instance.interrupt_callback = None
