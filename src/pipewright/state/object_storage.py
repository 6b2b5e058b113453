# state/object_storage.py
from __future__ import annotations

import io
import posixpath
import tempfile
import threading
from pathlib import Path
from typing import Any, BinaryIO, Protocol

import redis
from pydantic import ValidationError

from ..archive import extract_tarball, write_tarball
from ..stringutil import slugify
from .argument import Argument, ArgumentType
from .errors import KeyNotFoundError, MISSING_VALUE_ERRORS, ObjectNotFoundError
from .json_state import JSONState, StateValue, dump_json_state, load_json_state


class ObjectStorage(Protocol):
    """Minimal blob store: whole objects in, whole objects out."""

    def get_object(self, bucket: str, key: str) -> bytes:
        """Raises ObjectNotFoundError when the object does not exist."""
        ...

    def put_object(self, bucket: str, key: str, data: bytes) -> None: ...


class DirectoryObjectStorage:
    """Object storage on a local directory; each bucket is a sub-directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def _path(self, bucket: str, key: str) -> Path:
        p = (self.root / bucket / key).resolve()
        if self.root not in p.parents:
            raise ValueError(f"object key escapes storage root: {bucket}/{key}")
        return p

    def get_object(self, bucket: str, key: str) -> bytes:
        try:
            return self._path(bucket, key).read_bytes()
        except FileNotFoundError:
            raise ObjectNotFoundError(bucket, key) from None

    def put_object(self, bucket: str, key: str, data: bytes) -> None:
        p = self._path(bucket, key)
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_name(p.name + ".tmp")
        tmp.write_bytes(data)
        tmp.replace(p)


class RedisObjectStorage:
    """Object storage on redis; objects live at '<bucket>/<key>'."""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisObjectStorage":
        return cls(redis.from_url(url))

    def get_object(self, bucket: str, key: str) -> bytes:
        data = self.client.get(f"{bucket}/{key}")
        if data is None:
            raise ObjectNotFoundError(bucket, key)
        return data

    def put_object(self, bucket: str, key: str, data: bytes) -> None:
        self.client.set(f"{bucket}/{key}", data)


class ObjectStorageHandler:
    """
    State handler on top of any ObjectStorage:
      <base>/state/<slug>.json    one JSON document per argument
      <base>/<slug>               stored files
      <base>/<slug>.tar.gz        packaged directories

    Directories and files are materialized into fresh temporary
    locations on every read.
    """

    def __init__(self, storage: ObjectStorage, bucket: str, base_path: str = ""):
        self.storage = storage
        self.bucket = bucket
        self.base_path = base_path.strip("/")
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"ObjectStorageHandler({type(self.storage).__name__}, bucket={self.bucket!r}, base={self.base_path!r})"

    def _key(self, *parts: str) -> str:
        return posixpath.join(self.base_path, *parts) if self.base_path else posixpath.join(*parts)

    def _state_key(self, arg: Argument) -> str:
        return self._key("state", f"{slugify(arg.key)}.json")

    def _read_state(self, arg: Argument) -> JSONState:
        try:
            data = self.storage.get_object(self.bucket, self._state_key(arg))
        except ObjectNotFoundError:
            return {}
        try:
            return load_json_state(data)
        except ValidationError:
            return {}

    def _get_value(self, arg: Argument) -> Any:
        with self._lock:
            st = self._read_state(arg)
        try:
            return st[slugify(arg.key)].value
        except KeyError:
            raise KeyNotFoundError(arg.key) from None

    def _set_value(self, arg: Argument, value: Any) -> None:
        with self._lock:
            st = self._read_state(arg)
            st[slugify(arg.key)] = StateValue.of(arg, value)
            self.storage.put_object(self.bucket, self._state_key(arg), dump_json_state(st))

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
        data = self.storage.get_object(self.bucket, self._get_value(arg))
        path = Path(tempfile.mkdtemp(prefix="pipewright-")) / slugify(arg.key)
        path.write_bytes(data)
        return path.open("rb")

    def get_directory(self, arg: Argument) -> Path:
        value = self._get_value(arg)
        if not isinstance(value, dict):
            return Path(value)

        data = self.storage.get_object(self.bucket, value["object"])
        dest = tempfile.mkdtemp(prefix=f"pipewright-{slugify(arg.key)}-")
        return extract_tarball(io.BytesIO(data), dest)

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
        with open(path, "rb") as f:
            self.set_file_reader(arg, f)

    def set_file_reader(self, arg: Argument, reader: BinaryIO) -> str:
        key = self._key(slugify(arg.key))
        self.storage.put_object(self.bucket, key, reader.read())
        self._set_value(arg, key)
        return key

    def set_directory(self, arg: Argument, path: str | Path) -> None:
        src = Path(path).resolve()
        if not src.is_dir():
            raise NotADirectoryError(f"directory '{path}' does not exist")

        if arg.type != ArgumentType.PACKAGED_DIR:
            self._set_value(arg, str(src))
            return

        buf = io.BytesIO()
        write_tarball(buf, src)
        key = self._key(f"{slugify(arg.key)}.tar.gz")
        self.storage.put_object(self.bucket, key, buf.getvalue())
        self._set_value(arg, {"source": str(src), "object": key})
