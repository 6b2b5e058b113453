# state/errors.py
from __future__ import annotations

from ..errors import PipewrightError
from .argument import Argument, ArgumentType


class StateError(PipewrightError):
    pass


class EmptyStateError(StateError):
    """The backing store has never been written."""

    def __init__(self, location: str = ""):
        super().__init__(f"state is empty{': ' + location if location else ''}")


class KeyNotFoundError(StateError, KeyError):
    def __init__(self, key: str):
        super().__init__(f"key '{key}' not found in state")
        self.key = key

    def __str__(self) -> str:
        return self.args[0]


class KeyExistsError(StateError):
    def __init__(self, key: str):
        super().__init__(f"key '{key}' already exists in state")
        self.key = key


class ArgumentTypeError(StateError, TypeError):
    def __init__(self, arg: Argument, *expected: ArgumentType):
        names = ", ".join(t.name.lower() for t in expected)
        super().__init__(
            f"argument '{arg.key}' has type {arg.type.name.lower()}, expected one of: {names}"
        )
        self.argument = arg


class ObjectNotFoundError(StateError):
    def __init__(self, bucket: str, key: str):
        super().__init__(f"object '{key}' not found in bucket '{bucket}'")
        self.bucket = bucket
        self.key = key


class UnsupportedStateError(StateError):
    def __init__(self, url: str):
        super().__init__(f"unsupported state location: {url}")
        self.url = url


# Errors that mean "the value is not here", which fallback readers may cure.
MISSING_VALUE_ERRORS = (KeyNotFoundError, EmptyStateError)
