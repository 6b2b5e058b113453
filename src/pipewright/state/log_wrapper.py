# state/log_wrapper.py
from __future__ import annotations

from pathlib import Path
from typing import Any, BinaryIO, Callable, TypeVar

from ..ui.console import Console
from .argument import Argument, ArgumentType
from .base import Handler, Reader

V = TypeVar("V")


def _shown(arg: Argument, value: Any) -> Any:
    return "<secret>" if arg.type == ArgumentType.SECRET else value


class ReaderLogWrapper:
    """Debug-logs every read passing through to the wrapped reader."""

    def __init__(self, reader: Reader, console: Console):
        self.reader = reader
        self.console = console

    def __repr__(self) -> str:
        return repr(self.reader)

    def _logged(self, op: str, arg: Argument, fn: Callable[[], V]) -> V:
        try:
            value = fn()
        except Exception as e:
            self.console.print_debug(f"state: {op}('{arg.key}') failed: {e}")
            raise
        self.console.print_debug(f"state: {op}('{arg.key}') = {_shown(arg, value)!r}")
        return value

    def exists(self, arg: Argument) -> bool:
        return self._logged("exists", arg, lambda: self.reader.exists(arg))

    def get_string(self, arg: Argument) -> str:
        return self._logged("get_string", arg, lambda: self.reader.get_string(arg))

    def get_int64(self, arg: Argument) -> int:
        return self._logged("get_int64", arg, lambda: self.reader.get_int64(arg))

    def get_float64(self, arg: Argument) -> float:
        return self._logged("get_float64", arg, lambda: self.reader.get_float64(arg))

    def get_bool(self, arg: Argument) -> bool:
        return self._logged("get_bool", arg, lambda: self.reader.get_bool(arg))

    def get_file(self, arg: Argument) -> BinaryIO:
        return self._logged("get_file", arg, lambda: self.reader.get_file(arg))

    def get_directory(self, arg: Argument) -> Path:
        return self._logged("get_directory", arg, lambda: self.reader.get_directory(arg))

    def get_directory_string(self, arg: Argument) -> str:
        return self._logged("get_directory_string", arg, lambda: self.reader.get_directory_string(arg))


class HandlerLogWrapper(ReaderLogWrapper):
    """Debug-logs every read and write passing through to the wrapped handler."""

    def __init__(self, handler: Handler, console: Console):
        super().__init__(handler, console)
        self.handler = handler

    def _set(self, op: str, arg: Argument, value: Any, fn: Callable[[], V]) -> V:
        self.console.print_debug(f"state: {op}('{arg.key}', {_shown(arg, value)!r})")
        return fn()

    def set_string(self, arg: Argument, value: str) -> None:
        self._set("set_string", arg, value, lambda: self.handler.set_string(arg, value))

    def set_int64(self, arg: Argument, value: int) -> None:
        self._set("set_int64", arg, value, lambda: self.handler.set_int64(arg, value))

    def set_float64(self, arg: Argument, value: float) -> None:
        self._set("set_float64", arg, value, lambda: self.handler.set_float64(arg, value))

    def set_bool(self, arg: Argument, value: bool) -> None:
        self._set("set_bool", arg, value, lambda: self.handler.set_bool(arg, value))

    def set_file(self, arg: Argument, path: str | Path) -> None:
        self._set("set_file", arg, str(path), lambda: self.handler.set_file(arg, path))

    def set_file_reader(self, arg: Argument, reader: BinaryIO) -> str:
        return self._set("set_file_reader", arg, "<stream>", lambda: self.handler.set_file_reader(arg, reader))

    def set_directory(self, arg: Argument, path: str | Path) -> None:
        self._set("set_directory", arg, str(path), lambda: self.handler.set_directory(arg, path))
