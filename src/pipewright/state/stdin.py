# state/stdin.py
from __future__ import annotations

import sys
import threading
from typing import TextIO

from .args import ArgMap, ArgMapReader
from .argument import Argument
from .errors import KeyNotFoundError


class StdinReader(ArgMapReader):
    """
    Last-resort reader that asks the user for a missing value.

    Answers are remembered for the rest of the run. Prompts are
    serialized so concurrent steps never interleave them.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None):
        super().__init__(ArgMap())
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._lock = threading.Lock()

    def exists(self, arg: Argument) -> bool:
        # can't know without prompting
        return False

    def _get(self, key: str) -> str:
        with self._lock:
            if key in self.defaults:
                return self.defaults[key]

            self.stdout.write(
                f"Argument '{key}' requested but not found. Please provide a value for '{key}': "
            )
            self.stdout.flush()
            line = self.stdin.readline()
            if not line:
                raise KeyNotFoundError(key)

            value = line.rstrip("\r\n")
            self.stdout.write(
                f"In the future, you can provide this value with the '--arg {key}={value}' argument\n"
            )
            self.defaults[key] = value
            return value
