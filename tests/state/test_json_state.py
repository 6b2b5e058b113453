from __future__ import annotations

from pipewright.state.argument import (
    ArgumentType,
    bool_argument,
    directory_argument,
    int64_argument,
    string_argument,
)
from pipewright.state.filesystem import FilesystemState
from pipewright.state.json_state import StateValue, dump_json_state, load_json_state, set_value_from_json


def test_load_dump():
    state = {"count": StateValue.of(int64_argument("count"), 4)}
    loaded = load_json_state(dump_json_state(state))
    assert loaded["count"].value == 4
    assert loaded["count"].to_argument() == int64_argument("count")


def test_replay_into_another_handler(fs_state, tmp_path, source_dir):
    fs_state.set_string(string_argument("name"), "x")
    fs_state.set_bool(bool_argument("flag"), False)
    fs_state.set_directory(directory_argument("dist"), source_dir)

    other = FilesystemState(tmp_path / "other")
    for value in load_json_state(fs_state.state_file.read_bytes()).values():
        set_value_from_json(other, value)

    assert other.get_string(string_argument("name")) == "x"
    assert other.get_bool(bool_argument("flag")) is False
    assert (other.get_directory(directory_argument("dist")) / "hello.txt").is_file()
    assert load_json_state(other.state_file.read_bytes())["dist"].argument.type == ArgumentType.PACKAGED_DIR
