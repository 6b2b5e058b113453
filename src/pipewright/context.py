# context.py
from __future__ import annotations

import threading
import time
from typing import List, Optional

from .errors import CancelledError


class Context:
    """
    Cancellation signal handed to every action.

    Cancelling a context cancels all contexts derived from it. A context
    with a deadline reports itself cancelled once the deadline passes.
    Actions that run for a while should poll `cancelled` or block in
    `wait()` instead of sleeping.
    """

    def __init__(self, parent: Optional["Context"] = None, deadline: Optional[float] = None):
        self.parent = parent
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: List[Context] = []

        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline

        if parent is not None:
            parent._attach(self)

    def _attach(self, child: "Context") -> None:
        with self._lock:
            self._children.append(child)
            cancelled = self._event.is_set()
        if cancelled:
            child.cancel()

    def _detach(self, child: "Context") -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)

    def detach(self) -> None:
        """Stop following the parent. Call once the work under this context is over."""
        if self.parent is not None:
            self.parent._detach(self)

    def with_cancel(self) -> "Context":
        return Context(self)

    def with_timeout(self, seconds: float) -> "Context":
        return Context(self, time.monotonic() + seconds)

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            children = list(self._children)
        for child in children:
            child.cancel()

    def remaining(self) -> Optional[float]:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.remaining() == 0.0

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or timeout elapses. Returns True if cancelled."""
        remaining = self.remaining()
        if remaining is not None:
            timeout = remaining if timeout is None else min(timeout, remaining)
        self._event.wait(timeout)
        return self.cancelled

    def check(self) -> None:
        """Raise CancelledError if this context is done."""
        if self.cancelled:
            raise CancelledError("context cancelled")


def background() -> Context:
    """A root context that is never cancelled unless asked to."""
    return Context()
