from __future__ import annotations

import io
import json

import pytest

from pipewright.state.argument import (
    bool_argument,
    directory_argument,
    file_argument,
    float64_argument,
    int64_argument,
    secret_argument,
    string_argument,
    unpackaged_directory_argument,
)
from pipewright.state.errors import EmptyStateError, KeyNotFoundError
from pipewright.state.filesystem import FilesystemState


def test_empty_state(fs_state):
    arg = string_argument("nothing")
    with pytest.raises(EmptyStateError):
        fs_state.get_string(arg)
    assert not fs_state.exists(arg)


def test_invalid_state_file_is_empty(fs_state):
    fs_state.state_file.write_text("not json")
    with pytest.raises(EmptyStateError):
        fs_state.get_string(string_argument("x"))


def test_missing_key(fs_state):
    fs_state.set_string(string_argument("present"), "yes")
    with pytest.raises(KeyNotFoundError):
        fs_state.get_string(string_argument("absent"))


def test_scalar_values(fs_state):
    fs_state.set_string(string_argument("name"), "pipewright")
    fs_state.set_string(secret_argument("token"), "s3cret")
    fs_state.set_int64(int64_argument("count"), 42)
    fs_state.set_float64(float64_argument("ratio"), 0.5)
    fs_state.set_bool(bool_argument("flag"), True)

    assert fs_state.get_string(string_argument("name")) == "pipewright"
    assert fs_state.get_string(secret_argument("token")) == "s3cret"
    assert fs_state.get_int64(int64_argument("count")) == 42
    assert fs_state.get_float64(float64_argument("ratio")) == 0.5
    assert fs_state.get_bool(bool_argument("flag")) is True
    assert fs_state.exists(int64_argument("count"))


def test_json_layout(fs_state):
    fs_state.set_string(string_argument("Git Branch"), "main")
    fs_state.set_int64(int64_argument("count"), 3)

    doc = json.loads(fs_state.state_file.read_text())
    assert doc == {
        "git-branch": {"argument": {"type": 0, "key": "Git Branch"}, "value": "main"},
        "count": {"argument": {"type": 1, "key": "count"}, "value": 3},
    }


def test_state_survives_a_new_instance(fs_state):
    fs_state.set_string(string_argument("kept"), "value")
    assert FilesystemState(fs_state.path).get_string(string_argument("kept")) == "value"


def test_file_is_copied(fs_state, tmp_path):
    src = tmp_path / "report.txt"
    src.write_text("report")
    arg = file_argument("report")

    fs_state.set_file(arg, src)
    src.write_text("changed")

    with fs_state.get_file(arg) as f:
        assert f.read() == b"report"


def test_file_reader(fs_state):
    arg = file_argument("blob")
    path = fs_state.set_file_reader(arg, io.BytesIO(b"payload"))
    assert path.startswith(str(fs_state.path))
    with fs_state.get_file(arg) as f:
        assert f.read() == b"payload"


def test_packaged_directory(fs_state, source_dir):
    arg = directory_argument("build output")
    fs_state.set_directory(arg, source_dir)

    first = fs_state.get_directory(arg)
    second = fs_state.get_directory(arg)
    assert first != second
    assert (first / "hello.txt").read_text() == "hello\n"
    assert (first / "nested" / "data.bin").read_bytes() == b"\x00\x01\x02"
    assert (first / "empty").is_dir()
    assert fs_state.get_directory_string(arg) == str(source_dir.resolve())

    value = json.loads(fs_state.state_file.read_text())["build-output"]["value"]
    assert value["source"] == str(source_dir.resolve())
    assert (fs_state.path / value["archive"]).is_file()


def test_unpackaged_directory(fs_state, source_dir):
    arg = unpackaged_directory_argument("source")
    fs_state.set_directory(arg, source_dir)
    assert fs_state.get_directory(arg) == source_dir.resolve()
    assert fs_state.get_directory_string(arg) == str(source_dir.resolve())


def test_set_directory_requires_a_directory(fs_state, tmp_path):
    with pytest.raises(NotADirectoryError):
        fs_state.set_directory(directory_argument("nope"), tmp_path / "missing")


def _tree(root):
    return {
        str(p.relative_to(root)): (p.read_bytes() if p.is_file() else None)
        for p in sorted(root.rglob("*"))
    }


def test_packaged_directory_on_a_fresh_instance(fs_state, source_dir):
    arg = directory_argument("dist")
    fs_state.set_directory(arg, source_dir)

    out = FilesystemState(fs_state.path).get_directory(arg)
    assert _tree(out) == _tree(source_dir)
