# state/state.py
from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Callable, List, Optional, Sequence, TypeVar

from ..ui.console import Console
from .argument import DIRECTORY_TYPES, Argument, ArgumentType, types_equal
from .base import Handler, Reader
from .errors import MISSING_VALUE_ERRORS, ArgumentTypeError, StateError

V = TypeVar("V")

# Errors a fallback reader may raise without aborting the chain.
_FALLBACK_ERRORS = (StateError, ValueError, OSError)


def _check(arg: Argument, *types: ArgumentType) -> None:
    if not types_equal(arg, *types):
        raise ArgumentTypeError(arg, *types)


class State:
    """
    Typed state shared by every step of a run.

    Reads go to the primary handler first. When it does not have the
    value, each fallback reader is tried in order; the first value found
    is written back into the primary handler so later reads are served
    from it directly.
    """

    def __init__(
        self,
        handler: Handler,
        fallback: Optional[Sequence[Reader]] = None,
        console: Optional[Console] = None,
    ):
        self.handler = handler
        self.fallback: List[Reader] = list(fallback or [])
        self.console = console or Console()

    def __repr__(self) -> str:
        return f"State({self.handler!r}, fallback={self.fallback!r})"

    def _read(
        self,
        arg: Argument,
        get: Callable[[Reader], V],
        cache: Callable[[V], None],
    ) -> V:
        try:
            return get(self.handler)
        except MISSING_VALUE_ERRORS as primary:
            for reader in self.fallback:
                try:
                    value = get(reader)
                except _FALLBACK_ERRORS as e:
                    self.console.print_debug(f"state: '{arg.key}' not found in {reader!r}: {e}")
                    continue
                self.console.print_debug(f"state: '{arg.key}' found in {reader!r}, storing it")
                cache(value)
                return value
            raise primary

    # ------------------------------------------------------------------
    # Reader
    # ------------------------------------------------------------------

    def exists(self, arg: Argument) -> bool:
        if self.handler.exists(arg):
            return True
        for reader in self.fallback:
            try:
                if reader.exists(arg):
                    return True
            except _FALLBACK_ERRORS as e:
                self.console.print_debug(f"state: exists('{arg.key}') failed in {reader!r}: {e}")
        return False

    def get_string(self, arg: Argument) -> str:
        _check(arg, ArgumentType.STRING, ArgumentType.SECRET)
        return self._read(arg, lambda r: r.get_string(arg), lambda v: self.handler.set_string(arg, v))

    def get_int64(self, arg: Argument) -> int:
        _check(arg, ArgumentType.INT64)
        return self._read(arg, lambda r: r.get_int64(arg), lambda v: self.handler.set_int64(arg, v))

    def get_float64(self, arg: Argument) -> float:
        _check(arg, ArgumentType.FLOAT64)
        return self._read(arg, lambda r: r.get_float64(arg), lambda v: self.handler.set_float64(arg, v))

    def get_bool(self, arg: Argument) -> bool:
        _check(arg, ArgumentType.BOOL)
        return self._read(arg, lambda r: r.get_bool(arg), lambda v: self.handler.set_bool(arg, v))

    def get_file(self, arg: Argument) -> BinaryIO:
        _check(arg, ArgumentType.FILE)
        return self._read(arg, lambda r: r.get_file(arg), lambda f: self.handler.set_file(arg, f.name))

    def get_directory(self, arg: Argument) -> Path:
        _check(arg, *DIRECTORY_TYPES)
        try:
            return self.handler.get_directory(arg)
        except MISSING_VALUE_ERRORS:
            # filling from the path lets the primary handler package it
            self.get_directory_string(arg)
            return self.handler.get_directory(arg)

    def get_directory_string(self, arg: Argument) -> str:
        _check(arg, *DIRECTORY_TYPES)

        def _fill(path: str) -> None:
            self.handler.set_directory(arg, str(Path(path).resolve()))

        return self._read(arg, lambda r: r.get_directory_string(arg), _fill)

    # ------------------------------------------------------------------
    # Writer
    # ------------------------------------------------------------------

    def set_string(self, arg: Argument, value: str) -> None:
        _check(arg, ArgumentType.STRING, ArgumentType.SECRET)
        self.handler.set_string(arg, value)

    def set_int64(self, arg: Argument, value: int) -> None:
        _check(arg, ArgumentType.INT64)
        self.handler.set_int64(arg, value)

    def set_float64(self, arg: Argument, value: float) -> None:
        _check(arg, ArgumentType.FLOAT64)
        self.handler.set_float64(arg, value)

    def set_bool(self, arg: Argument, value: bool) -> None:
        _check(arg, ArgumentType.BOOL)
        self.handler.set_bool(arg, value)

    def set_file(self, arg: Argument, path: str | Path) -> None:
        _check(arg, ArgumentType.FILE)
        self.handler.set_file(arg, path)

    def set_file_reader(self, arg: Argument, reader: BinaryIO) -> str:
        _check(arg, ArgumentType.FILE)
        return self.handler.set_file_reader(arg, reader)

    def set_directory(self, arg: Argument, path: str | Path) -> None:
        _check(arg, *DIRECTORY_TYPES)
        self.handler.set_directory(arg, path)
