# model.py
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Optional, TextIO, Tuple, Union

from .state.argument import BRANCH, COMMIT_REF, COMMIT_SHA, REMOTE_URL, TAG_NAME, Argument

if TYPE_CHECKING:
    from .context import Context
    from .state.base import Handler
    from .ui.console import Console


@dataclass
class ActionOpts:
    """
    What an action gets besides its context.

    stdout and stderr are text streams, not necessarily files: LogWrapper
    swaps in console line writers, which have no fileno(). Pipe a
    subprocess and copy its output into them, as `sh` does, rather than
    passing them to subprocess directly.
    """
    stdout: TextIO
    stderr: TextIO
    state: "Handler"
    console: Optional["Console"] = None
    path: str = "."
    build_id: str = ""
    version: str = "latest"


Action = Callable[["Context", ActionOpts], None]


class StepKind(Enum):
    NORMAL = "normal"
    BACKGROUND = "background"


@dataclass(frozen=True)
class Step:
    """
    A unit of work inside a pipeline.

    required_args / provided_args are the data dependencies used to order
    steps. A step with action=None does nothing when run; clients may still
    use its image.
    """
    name: str
    action: Optional[Action] = None
    image: Optional[str] = None
    required_args: Tuple[Argument, ...] = ()
    provided_args: Tuple[Argument, ...] = ()
    kind: StepKind = StepKind.NORMAL
    id: int = 0

    def __str__(self) -> str:
        return f"{self.name} (id={self.id})"

    def is_background(self) -> bool:
        return self.kind == StepKind.BACKGROUND

    def with_name(self, name: str) -> "Step":
        return replace(self, name=name)

    def with_image(self, image: str) -> "Step":
        return replace(self, image=image)

    def with_id(self, step_id: int) -> "Step":
        return replace(self, id=step_id)

    def requires(self, *args: Argument) -> "Step":
        return replace(self, required_args=self.required_args + tuple(args))

    def provides(self, *args: Argument) -> "Step":
        return replace(self, provided_args=self.provided_args + tuple(args))

    def as_background(self) -> "Step":
        return replace(self, kind=StepKind.BACKGROUND)


# ---------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------

FilterValue = Union[str, re.Pattern]

GIT_COMMIT = "git-commit"
GIT_TAG = "git-tag"


@dataclass(frozen=True)
class Event:
    """What triggers a pipeline, and the arguments it makes available."""
    name: str
    filters: Dict[str, FilterValue] = field(default_factory=dict)
    provides: Tuple[Argument, ...] = ()

    def filter_strings(self) -> Dict[str, str]:
        return {k: v if isinstance(v, str) else v.pattern for k, v in self.filters.items()}


def git_commit_event(branch: Optional[FilterValue] = None) -> Event:
    filters: Dict[str, FilterValue] = {}
    if branch is not None:
        filters["branch"] = branch
    return Event(GIT_COMMIT, filters, (COMMIT_SHA, BRANCH, REMOTE_URL))


def git_tag_event(name: Optional[FilterValue] = None) -> Event:
    filters: Dict[str, FilterValue] = {}
    if name is not None:
        filters["tag"] = name
    return Event(GIT_TAG, filters, (COMMIT_SHA, COMMIT_REF, TAG_NAME, REMOTE_URL))

