from __future__ import annotations

import io

import pytest

from pipewright.config import RunConfig
from pipewright.state.argument import secret_argument, string_argument
from pipewright.state.default import handler_from_url, new_default_state
from pipewright.state.errors import UnsupportedStateError
from pipewright.state.filesystem import FilesystemState
from pipewright.state.object_storage import DirectoryObjectStorage, ObjectStorageHandler


def test_file_url(tmp_path):
    h = handler_from_url((tmp_path / "st").as_uri())
    assert isinstance(h, FilesystemState)
    assert h.path == (tmp_path / "st").resolve()


def test_plain_path(tmp_path):
    h = handler_from_url(str(tmp_path / "plain"))
    assert isinstance(h, FilesystemState)


def test_dir_url(tmp_path):
    h = handler_from_url(f"dir://{tmp_path}/objects?bucket=ci&base=run/7")
    assert isinstance(h, ObjectStorageHandler)
    assert isinstance(h.storage, DirectoryObjectStorage)
    assert h.bucket == "ci"
    assert h.base_path == "run/7"


def test_unsupported_url():
    with pytest.raises(UnsupportedStateError):
        handler_from_url("s3://bucket/key")


def test_default_state_falls_back_to_args(tmp_path, console):
    config = RunConfig(state=(tmp_path / "st").as_uri(), args={"name": "from-arg"}, can_stdin_prompt=False)
    state = new_default_state(config, console)
    assert state.get_string(string_argument("name")) == "from-arg"
    assert len(state.fallback) == 1


def test_default_state_prompts(tmp_path, console):
    config = RunConfig(state=(tmp_path / "st").as_uri())
    state = new_default_state(config, console, stdin=io.StringIO("typed\n"), stdout=io.StringIO())
    assert state.get_string(string_argument("name")) == "typed"


def test_secrets_are_masked_in_debug_output(tmp_path, debug_console):
    config = RunConfig(state=(tmp_path / "st").as_uri(), args={"token": "hunter2"}, can_stdin_prompt=False)
    state = new_default_state(config, debug_console)
    assert state.get_string(secret_argument("token")) == "hunter2"

    logged = debug_console.err.getvalue()
    assert "<secret>" in logged
    assert "hunter2" not in logged
