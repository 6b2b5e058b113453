# state/filesystem.py
from __future__ import annotations

import shutil
import threading
from pathlib import Path
from typing import Any, BinaryIO

from pydantic import ValidationError

from ..archive import extract_tarball, write_tarball_file
from ..stringutil import random_string, slugify
from .argument import Argument, ArgumentType
from .errors import EmptyStateError, KeyNotFoundError, MISSING_VALUE_ERRORS
from .json_state import JSONState, StateValue, dump_json_state, load_json_state

STATE_FILE = "state.json"


class FilesystemState:
    """
    State kept in a single directory:
      path/
        state.json                 every value, keyed by slugified argument key
        <slug>-<file name>         copies of stored files
        <slug>-<random>.tar.gz     packaged directories
        <slug>/<random>/           extractions handed out by get_directory

    A lock serializes every read-modify-write of state.json, so one
    instance is safe to share between threads.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).resolve()
        self.path.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def state_file(self) -> Path:
        return self.path / STATE_FILE

    def __repr__(self) -> str:
        return f"FilesystemState({str(self.path)!r})"

    # ------------------------------------------------------------------
    # JSON document
    # ------------------------------------------------------------------

    def _read(self) -> JSONState:
        try:
            data = self.state_file.read_bytes()
        except FileNotFoundError:
            raise EmptyStateError(str(self.state_file)) from None
        if not data.strip():
            raise EmptyStateError(str(self.state_file))
        try:
            return load_json_state(data)
        except ValidationError as e:
            raise EmptyStateError(str(self.state_file)) from e

    def _write(self, state: JSONState) -> None:
        tmp = self.state_file.with_suffix(".json.tmp")
        tmp.write_bytes(dump_json_state(state))
        tmp.replace(self.state_file)

    def _set_value(self, arg: Argument, value: Any) -> None:
        with self._lock:
            try:
                state = self._read()
            except EmptyStateError:
                state = {}
            state[slugify(arg.key)] = StateValue.of(arg, value)
            self._write(state)

    def _get_value(self, arg: Argument) -> Any:
        with self._lock:
            state = self._read()
        try:
            return state[slugify(arg.key)].value
        except KeyError:
            raise KeyNotFoundError(arg.key) from None

    # ------------------------------------------------------------------
    # Reader
    # ------------------------------------------------------------------

    def exists(self, arg: Argument) -> bool:
        try:
            self._get_value(arg)
        except MISSING_VALUE_ERRORS:
            return False
        return True

    def get_string(self, arg: Argument) -> str:
        return str(self._get_value(arg))

    def get_int64(self, arg: Argument) -> int:
        return int(self._get_value(arg))

    def get_float64(self, arg: Argument) -> float:
        return float(self._get_value(arg))

    def get_bool(self, arg: Argument) -> bool:
        return bool(self._get_value(arg))

    def get_file(self, arg: Argument) -> BinaryIO:
        return open(self._get_value(arg), "rb")

    def get_directory(self, arg: Argument) -> Path:
        value = self._get_value(arg)
        if not isinstance(value, dict):
            return Path(value)

        slug = slugify(arg.key)
        dest = self.path / slug / random_string(8)
        with (self.path / value["archive"]).open("rb") as f:
            return extract_tarball(f, dest)

    def get_directory_string(self, arg: Argument) -> str:
        value = self._get_value(arg)
        if isinstance(value, dict):
            return value["source"]
        return str(value)

    # ------------------------------------------------------------------
    # Writer
    # ------------------------------------------------------------------

    def set_string(self, arg: Argument, value: str) -> None:
        self._set_value(arg, value)

    def set_int64(self, arg: Argument, value: int) -> None:
        self._set_value(arg, int(value))

    def set_float64(self, arg: Argument, value: float) -> None:
        self._set_value(arg, float(value))

    def set_bool(self, arg: Argument, value: bool) -> None:
        self._set_value(arg, bool(value))

    def set_file(self, arg: Argument, path: str | Path) -> None:
        src = Path(path)
        dst = self.path / f"{slugify(arg.key)}-{src.name}"
        if src.resolve() != dst:
            shutil.copyfile(src, dst)
        self._set_value(arg, str(dst))

    def set_file_reader(self, arg: Argument, reader: BinaryIO) -> str:
        dst = self.path / slugify(arg.key)
        with dst.open("wb") as f:
            shutil.copyfileobj(reader, f)
        self._set_value(arg, str(dst))
        return str(dst)

    def set_directory(self, arg: Argument, path: str | Path) -> None:
        src = Path(path).resolve()
        if not src.is_dir():
            raise NotADirectoryError(f"directory '{path}' does not exist")

        if arg.type != ArgumentType.PACKAGED_DIR:
            self._set_value(arg, str(src))
            return

        name = f"{slugify(arg.key)}-{random_string(8)}.tar.gz"
        write_tarball_file(self.path / name, src)
        self._set_value(arg, {"source": str(src), "archive": name})
