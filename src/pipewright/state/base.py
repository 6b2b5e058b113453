# state/base.py
from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable

from .argument import Argument


@runtime_checkable
class Reader(Protocol):
    """Read access to typed values keyed by Argument."""

    def exists(self, arg: Argument) -> bool: ...

    def get_string(self, arg: Argument) -> str: ...

    def get_int64(self, arg: Argument) -> int: ...

    def get_float64(self, arg: Argument) -> float: ...

    def get_bool(self, arg: Argument) -> bool: ...

    def get_file(self, arg: Argument) -> BinaryIO:
        """Open the stored file for reading. The caller closes it."""
        ...

    def get_directory(self, arg: Argument) -> Path:
        """Directory tree for arg. Packaged directories are extracted somewhere fresh on every call."""
        ...

    def get_directory_string(self, arg: Argument) -> str:
        """The original path the directory was stored from."""
        ...


@runtime_checkable
class Writer(Protocol):
    def set_string(self, arg: Argument, value: str) -> None: ...

    def set_int64(self, arg: Argument, value: int) -> None: ...

    def set_float64(self, arg: Argument, value: float) -> None: ...

    def set_bool(self, arg: Argument, value: bool) -> None: ...

    def set_file(self, arg: Argument, path: str | Path) -> None: ...

    def set_file_reader(self, arg: Argument, reader: BinaryIO) -> str:
        """Store the stream's content as a file; returns where it was stored."""
        ...

    def set_directory(self, arg: Argument, path: str | Path) -> None: ...


@runtime_checkable
class Handler(Reader, Writer, Protocol):
    pass
