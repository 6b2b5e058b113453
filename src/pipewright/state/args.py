# state/args.py
from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Dict, Iterable

from .argument import Argument
from .errors import KeyExistsError, KeyNotFoundError

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def parse_bool(value: str) -> bool:
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"invalid boolean value: {value!r}")


class ArgMap(Dict[str, str]):
    """Values supplied on the command line as repeated 'key=value' pairs."""

    @classmethod
    def parse(cls, pairs: Iterable[str]) -> "ArgMap":
        out = cls()
        for pair in pairs:
            key, sep, value = pair.partition("=")
            if not sep or not key:
                raise ValueError(f"invalid argument {pair!r}, expected key=value")
            if key in out:
                raise KeyExistsError(key)
            out[key] = value
        return out

    def get_value(self, key: str) -> str:
        try:
            return self[key]
        except KeyError:
            raise KeyNotFoundError(key) from None


class ArgMapReader:
    """Read-only state backed by an ArgMap. Values are parsed on read."""

    def __init__(self, defaults: ArgMap):
        self.defaults = defaults

    def __repr__(self) -> str:
        return f"{type(self).__name__}({sorted(self.defaults)})"

    def _get(self, key: str) -> str:
        return self.defaults.get_value(key)

    def exists(self, arg: Argument) -> bool:
        return arg.key in self.defaults

    def get_string(self, arg: Argument) -> str:
        return self._get(arg.key)

    def get_int64(self, arg: Argument) -> int:
        return int(self._get(arg.key), 10)

    def get_float64(self, arg: Argument) -> float:
        return float(self._get(arg.key))

    def get_bool(self, arg: Argument) -> bool:
        return parse_bool(self._get(arg.key))

    def get_file(self, arg: Argument) -> BinaryIO:
        return open(self._get(arg.key), "rb")

    def get_directory(self, arg: Argument) -> Path:
        return Path(self._get(arg.key))

    def get_directory_string(self, arg: Argument) -> str:
        return self._get(arg.key)
