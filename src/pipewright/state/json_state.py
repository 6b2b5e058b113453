# state/json_state.py
from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, TypeAdapter

from .argument import Argument, ArgumentType
from .base import Writer


class StateArgument(BaseModel):
    type: int
    key: str


class StateValue(BaseModel):
    """One persisted entry: {"argument": {"type": int, "key": str}, "value": ...}."""
    argument: StateArgument
    value: Any = None

    @classmethod
    def of(cls, arg: Argument, value: Any) -> "StateValue":
        return cls(argument=StateArgument(**arg.to_json()), value=value)

    def to_argument(self) -> Argument:
        return Argument.from_json(self.argument.model_dump())


JSONState = Dict[str, StateValue]

_JSON_STATE = TypeAdapter(JSONState)


def load_json_state(data: bytes | str) -> JSONState:
    return _JSON_STATE.validate_json(data)


def dump_json_state(state: JSONState) -> bytes:
    return _JSON_STATE.dump_json(state, indent=2)


def set_value_from_json(w: Writer, value: StateValue) -> None:
    """Replay a persisted entry into any Writer."""
    arg = value.to_argument()
    v = value.value
    t = arg.type
    if t in (ArgumentType.STRING, ArgumentType.SECRET):
        w.set_string(arg, str(v))
    elif t == ArgumentType.INT64:
        w.set_int64(arg, int(v))
    elif t == ArgumentType.FLOAT64:
        w.set_float64(arg, float(v))
    elif t == ArgumentType.BOOL:
        w.set_bool(arg, bool(v))
    elif t == ArgumentType.FILE:
        w.set_file(arg, str(v))
    elif t in (ArgumentType.PACKAGED_DIR, ArgumentType.UNPACKAGED_DIR):
        # packaged entries persist {"source": ..., "archive": ...}
        w.set_directory(arg, v["source"] if isinstance(v, dict) else str(v))
