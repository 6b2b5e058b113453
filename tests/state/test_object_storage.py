from __future__ import annotations

import io
import json

import pytest

from pipewright.state.argument import (
    directory_argument,
    file_argument,
    int64_argument,
    string_argument,
    unpackaged_directory_argument,
)
from pipewright.state.errors import KeyNotFoundError, ObjectNotFoundError
from pipewright.state.object_storage import (
    DirectoryObjectStorage,
    ObjectStorageHandler,
    RedisObjectStorage,
)


class FakeRedis:
    """The two redis commands RedisObjectStorage uses."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value


@pytest.fixture
def storage(tmp_path):
    return DirectoryObjectStorage(tmp_path / "objects")


@pytest.fixture
def handler(storage):
    return ObjectStorageHandler(storage, "bucket", "builds/1")


def test_directory_storage(storage):
    storage.put_object("b", "a/b/c.txt", b"data")
    assert storage.get_object("b", "a/b/c.txt") == b"data"
    with pytest.raises(ObjectNotFoundError):
        storage.get_object("b", "missing")


def test_directory_storage_rejects_escaping_keys(storage):
    with pytest.raises(ValueError):
        storage.put_object("b", "../../outside", b"x")


def test_redis_storage():
    client = FakeRedis()
    storage = RedisObjectStorage(client)
    storage.put_object("bucket", "k", b"v")
    assert client.data == {"bucket/k": b"v"}
    assert storage.get_object("bucket", "k") == b"v"
    with pytest.raises(ObjectNotFoundError):
        storage.get_object("bucket", "other")


def test_values(handler, storage):
    handler.set_string(string_argument("Commit SHA"), "abc123")
    handler.set_int64(int64_argument("count"), 5)
    assert handler.get_string(string_argument("Commit SHA")) == "abc123"
    assert handler.get_int64(int64_argument("count")) == 5
    assert handler.exists(int64_argument("count"))
    assert not handler.exists(int64_argument("other"))
    with pytest.raises(KeyNotFoundError):
        handler.get_string(string_argument("other"))

    doc = json.loads(storage.get_object("bucket", "builds/1/state/commit-sha.json"))
    assert doc["commit-sha"]["argument"] == {"type": 0, "key": "Commit SHA"}
    assert doc["commit-sha"]["value"] == "abc123"


def test_file(handler, tmp_path):
    src = tmp_path / "a.txt"
    src.write_bytes(b"contents")
    arg = file_argument("a file")
    handler.set_file(arg, src)
    with handler.get_file(arg) as f:
        assert f.read() == b"contents"

    assert handler.set_file_reader(arg, io.BytesIO(b"new")) == "builds/1/a-file"
    with handler.get_file(arg) as f:
        assert f.read() == b"new"


def test_packaged_directory(handler, source_dir):
    arg = directory_argument("dist")
    handler.set_directory(arg, source_dir)
    out = handler.get_directory(arg)
    assert (out / "hello.txt").read_text() == "hello\n"
    assert (out / "nested" / "data.bin").read_bytes() == b"\x00\x01\x02"
    assert handler.get_directory_string(arg) == str(source_dir.resolve())


def test_unpackaged_directory(handler, source_dir):
    arg = unpackaged_directory_argument("src")
    handler.set_directory(arg, source_dir)
    assert handler.get_directory(arg) == source_dir.resolve()


def test_handler_on_redis(source_dir):
    handler = ObjectStorageHandler(RedisObjectStorage(FakeRedis()), "pipewright")
    handler.set_string(string_argument("x"), "y")
    handler.set_directory(directory_argument("d"), source_dir)
    assert handler.get_string(string_argument("x")) == "y"
    assert (handler.get_directory(directory_argument("d")) / "hello.txt").is_file()
    assert set(handler.storage.client.data) == {"pipewright/state/x.json", "pipewright/state/d.json", "pipewright/d.tar.gz"}
