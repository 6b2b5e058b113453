# state/argument.py
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, List


class ArgumentType(IntEnum):
    STRING = 0
    INT64 = 1
    FLOAT64 = 2
    BOOL = 3
    SECRET = 4
    FILE = 5
    PACKAGED_DIR = 6
    UNPACKAGED_DIR = 7


DIRECTORY_TYPES = (ArgumentType.PACKAGED_DIR, ArgumentType.UNPACKAGED_DIR)


@dataclass(frozen=True)
class Argument:
    """
    A typed name for a value passed between steps.

    An Argument never carries a value; values live in the state store.
    Two arguments are the same argument when both type and key match.
    """
    type: ArgumentType
    key: str

    def __str__(self) -> str:
        return f"{self.key} ({self.type.name.lower()})"

    def to_json(self) -> dict:
        return {"type": int(self.type), "key": self.key}

    @classmethod
    def from_json(cls, data: dict) -> "Argument":
        return cls(type=ArgumentType(int(data["type"])), key=str(data["key"]))


def string_argument(key: str) -> Argument:
    return Argument(ArgumentType.STRING, key)


def int64_argument(key: str) -> Argument:
    return Argument(ArgumentType.INT64, key)


def float64_argument(key: str) -> Argument:
    return Argument(ArgumentType.FLOAT64, key)


def bool_argument(key: str) -> Argument:
    return Argument(ArgumentType.BOOL, key)


def secret_argument(key: str) -> Argument:
    return Argument(ArgumentType.SECRET, key)


def file_argument(key: str) -> Argument:
    return Argument(ArgumentType.FILE, key)


def directory_argument(key: str) -> Argument:
    """A directory that is archived into the state store and extracted on read."""
    return Argument(ArgumentType.PACKAGED_DIR, key)


def unpackaged_directory_argument(key: str) -> Argument:
    """A directory referenced by path only; its contents never enter the state store."""
    return Argument(ArgumentType.UNPACKAGED_DIR, key)


def types_equal(arg: Argument, *types: ArgumentType) -> bool:
    return arg.type in types


def without(args: Iterable[Argument], exclude: Iterable[Argument]) -> List[Argument]:
    """args minus every argument in exclude, order preserved."""
    excluded = set(exclude)
    return [a for a in args if a not in excluded]


# ---------------------------------------------------------------------
# Well-known arguments
# ---------------------------------------------------------------------

COMMIT_SHA = string_argument("git-commit-sha")
COMMIT_REF = string_argument("git-commit-ref")
BRANCH = string_argument("git-branch")
REMOTE_URL = string_argument("remote-url")
TAG_NAME = string_argument("git-tag")
WORKING_DIR = string_argument("workdir")
BUILD_ID = string_argument("build-id")

SOURCE_FS = unpackaged_directory_argument("source")

# Provided by every client before any step runs; registered as provided by
# the root node of every pipeline.
CLIENT_PROVIDED_ARGUMENTS = [BUILD_ID, SOURCE_FS, WORKING_DIR]
