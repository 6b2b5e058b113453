# state/observer.py
from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import BinaryIO, Dict, Optional

from .argument import Argument
from .base import Handler


class Observer:
    """
    Handler decorator that lets a consumer block until a value is written.

    Used by steps that depend on values a background step publishes, since
    nothing in the graph orders them after it.
    """

    def __init__(self, handler: Handler):
        self.handler = handler
        self._lock = threading.Lock()
        self._conds: Dict[Argument, threading.Condition] = {}

    def __repr__(self) -> str:
        return f"Observer({self.handler!r})"

    def _cond(self, arg: Argument) -> threading.Condition:
        with self._lock:
            if arg not in self._conds:
                self._conds[arg] = threading.Condition()
            return self._conds[arg]

    def _notify(self, arg: Argument) -> None:
        cond = self._cond(arg)
        with cond:
            cond.notify_all()

    def wait_for(self, arg: Argument, timeout: Optional[float] = None) -> bool:
        """Block until arg exists. Returns False if timeout elapses first."""
        deadline = None if timeout is None else time.monotonic() + timeout
        cond = self._cond(arg)
        with cond:
            while not self.handler.exists(arg):
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                cond.wait(remaining)
        return True

    # Reader: pass-through

    def exists(self, arg: Argument) -> bool:
        return self.handler.exists(arg)

    def get_string(self, arg: Argument) -> str:
        return self.handler.get_string(arg)

    def get_int64(self, arg: Argument) -> int:
        return self.handler.get_int64(arg)

    def get_float64(self, arg: Argument) -> float:
        return self.handler.get_float64(arg)

    def get_bool(self, arg: Argument) -> bool:
        return self.handler.get_bool(arg)

    def get_file(self, arg: Argument) -> BinaryIO:
        return self.handler.get_file(arg)

    def get_directory(self, arg: Argument) -> Path:
        return self.handler.get_directory(arg)

    def get_directory_string(self, arg: Argument) -> str:
        return self.handler.get_directory_string(arg)

    # Writer: write, then wake waiters

    def set_string(self, arg: Argument, value: str) -> None:
        self.handler.set_string(arg, value)
        self._notify(arg)

    def set_int64(self, arg: Argument, value: int) -> None:
        self.handler.set_int64(arg, value)
        self._notify(arg)

    def set_float64(self, arg: Argument, value: float) -> None:
        self.handler.set_float64(arg, value)
        self._notify(arg)

    def set_bool(self, arg: Argument, value: bool) -> None:
        self.handler.set_bool(arg, value)
        self._notify(arg)

    def set_file(self, arg: Argument, path: str | Path) -> None:
        self.handler.set_file(arg, path)
        self._notify(arg)

    def set_file_reader(self, arg: Argument, reader: BinaryIO) -> str:
        path = self.handler.set_file_reader(arg, reader)
        self._notify(arg)
        return path

    def set_directory(self, arg: Argument, path: str | Path) -> None:
        self.handler.set_directory(arg, path)
        self._notify(arg)
