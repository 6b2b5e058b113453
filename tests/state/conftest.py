from __future__ import annotations

import pytest

from pipewright.state.filesystem import FilesystemState


@pytest.fixture
def fs_state(tmp_path):
    return FilesystemState(tmp_path / "state")


@pytest.fixture
def source_dir(tmp_path):
    src = tmp_path / "src"
    (src / "nested").mkdir(parents=True)
    (src / "empty").mkdir()
    (src / "hello.txt").write_text("hello\n")
    (src / "nested" / "data.bin").write_bytes(b"\x00\x01\x02")
    return src
