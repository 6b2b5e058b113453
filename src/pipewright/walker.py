# walker.py
from __future__ import annotations

from typing import Callable, Iterable, Protocol, Set

from .context import Context
from .errors import NotFoundError
from .model import Step
from .pipeline import Pipeline

StepsFn = Callable[..., None]
PipelinesFn = Callable[..., None]


class Walker(Protocol):
    """
    Hands a client its work in order.

    Both methods call fn(ctx, *nodes) once per batch. Everything in a batch
    may run in parallel; a batch starts only after the previous one has
    returned. The first exception raised by fn ends the walk.
    """

    def walk_steps(self, ctx: Context, pipeline_id: int, fn: StepsFn) -> None: ...

    def walk_pipelines(self, ctx: Context, fn: PipelinesFn) -> None: ...


class PipelineFilter:
    """Walks only the selected pipelines; batches left empty are skipped."""

    def __init__(self, walker: Walker, pipeline_ids: Iterable[int]):
        self.walker = walker
        self.pipeline_ids: Set[int] = set(pipeline_ids)

    def walk_pipelines(self, ctx: Context, fn: PipelinesFn) -> None:
        def _filtered(ctx: Context, *pipelines: Pipeline) -> None:
            selected = [p for p in pipelines if p.id in self.pipeline_ids]
            if selected:
                fn(ctx, *selected)

        self.walker.walk_pipelines(ctx, _filtered)

    def walk_steps(self, ctx: Context, pipeline_id: int, fn: StepsFn) -> None:
        if pipeline_id not in self.pipeline_ids:
            raise NotFoundError(pipeline_id)
        self.walker.walk_steps(ctx, pipeline_id, fn)


class SingleStepWalker:
    """Walks exactly one step of one pipeline."""

    def __init__(self, pipeline: Pipeline, step: Step):
        self.pipeline = pipeline
        self.step = step

    def walk_pipelines(self, ctx: Context, fn: PipelinesFn) -> None:
        fn(ctx, self.pipeline)

    def walk_steps(self, ctx: Context, pipeline_id: int, fn: StepsFn) -> None:
        if pipeline_id != self.pipeline.id:
            raise NotFoundError(pipeline_id)
        fn(ctx, self.step)
