from .collection import Collection
from .config import RunConfig
from .context import Context, background as background_context
from .dag import Graph
from .dsl import NOOP_STEP, background, combine, sh, step
from .engine import Engine
from .model import ActionOpts, Event, Step, git_commit_event, git_tag_event
from .pipeline import Pipeline
from .state.argument import (
    Argument,
    ArgumentType,
    bool_argument,
    directory_argument,
    file_argument,
    float64_argument,
    int64_argument,
    secret_argument,
    string_argument,
    unpackaged_directory_argument,
)
from .ui.console import Console

__all__ = [
    "Collection",
    "RunConfig",
    "Context",
    "background_context",
    "Graph",
    "NOOP_STEP",
    "background",
    "combine",
    "sh",
    "step",
    "Engine",
    "ActionOpts",
    "Event",
    "Step",
    "git_commit_event",
    "git_tag_event",
    "Pipeline",
    "Argument",
    "ArgumentType",
    "bool_argument",
    "directory_argument",
    "file_argument",
    "float64_argument",
    "int64_argument",
    "secret_argument",
    "string_argument",
    "unpackaged_directory_argument",
    "Console",
]
