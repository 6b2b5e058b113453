# errors.py
from __future__ import annotations

from dataclasses import dataclass, field


class PipewrightError(Exception):
    """Base class for every error raised by pipewright."""


# ----------------------------------------------------------------------
# Graph errors
# ----------------------------------------------------------------------

class GraphError(PipewrightError):
    pass


class DuplicateIDError(GraphError):
    def __init__(self, node_id: int):
        super().__init__(f"node with id {node_id} already exists")
        self.node_id = node_id


class NotFoundError(GraphError, LookupError):
    def __init__(self, node_id: int | str):
        super().__init__(f"node '{node_id}' not found")
        self.node_id = node_id


class CycleError(GraphError):
    def __init__(self, stuck: list[int]):
        super().__init__(f"graph has a cycle. Stuck nodes: {stuck}")
        self.stuck = stuck


# ----------------------------------------------------------------------
# Dependency resolution errors
# ----------------------------------------------------------------------

class DependencyError(PipewrightError):
    pass


class NoProviderError(DependencyError):
    def __init__(self, step: str, key: str):
        super().__init__(f"no step provides argument '{key}' required by step '{step}'")
        self.step = step
        self.key = key


class NoPipelineProviderError(DependencyError):
    def __init__(self, pipeline: str, key: str):
        super().__init__(f"no pipeline provides argument '{key}' required by pipeline '{pipeline}'")
        self.pipeline = pipeline
        self.key = key


class AmbiguousProviderError(DependencyError):
    def __init__(self, key: str, first: int, second: int):
        super().__init__(
            f"argument '{key}' is provided by more than one node (ids {first} and {second})"
        )
        self.key = key
        self.first = first
        self.second = second


# ----------------------------------------------------------------------
# Validation / execution errors
# ----------------------------------------------------------------------

class ValidationError(PipewrightError):
    pass


class SkipValidation(PipewrightError):
    """Raised by a client's validate() to warn about a step without rejecting it."""


@dataclass
class ExecutionError(PipewrightError):
    """
    Structured execution error with enough context for:
      - clean CLI output
      - debugging without full tracebacks
    """
    message: str
    pipeline: str | None = None
    step: str | None = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [self.message]
        if self.pipeline:
            lines.append(f"pipeline={self.pipeline}")
        if self.step:
            lines.append(f"step={self.step}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


class BatchTimeoutError(PipewrightError, TimeoutError):
    def __init__(self, timeout: float, pending: list[str]):
        super().__init__(f"batch did not finish within {timeout:g}s. Still running: {pending}")
        self.timeout = timeout
        self.pending = pending


class CancelledError(PipewrightError):
    pass
