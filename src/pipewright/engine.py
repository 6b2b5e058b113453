# engine.py
from __future__ import annotations

import itertools
from typing import Callable

from .clients.base import Client
from .collection import Collection
from .config import RunConfig
from .context import Context, background as background_context
from .errors import SkipValidation, ValidationError
from .model import Event, Step, StepKind
from .pipeline import Pipeline
from .state.argument import CLIENT_PROVIDED_ARGUMENTS
from .ui.console import Console
from .walker import PipelineFilter, SingleStepWalker, Walker

DEFAULT_PIPELINE_ID = 1


class Engine:
    """
    What a workflow file talks to.

    Steps added with add()/background() go to the current pipeline: the
    default one, or the one being populated inside new_pipeline(). Every
    step gets an id from one counter, so ids are unique across pipelines
    and stable between runs of the same workflow.
    """

    def __init__(
        self,
        client: Client,
        config: RunConfig,
        console: Console,
        name: str = "default",
    ):
        self.client = client
        self.config = config
        self.console = console
        self.collection = Collection()
        self._step_ids = itertools.count(1)
        self._pipeline_ids = itertools.count(DEFAULT_PIPELINE_ID + 1)
        self.default = Pipeline(name, DEFAULT_PIPELINE_ID)
        self.current = self.default

    # ------------------------------------------------------------------
    # Authoring
    # ------------------------------------------------------------------

    def _setup(self, steps: tuple[Step, ...], kind: StepKind) -> list[Step]:
        out = []
        for step in steps:
            step = step.with_id(next(self._step_ids))
            if kind == StepKind.BACKGROUND:
                step = step.as_background()
            self._validate(step)
            out.append(step)
        return out

    def _validate(self, step: Step) -> None:
        name = step.name or f"unnamed-step-{step.id}"
        try:
            self.client.validate(step)
        except SkipValidation as e:
            self.console.print_warning(f"[name: {name}, id: {step.id}] {e}")
        except ValidationError as e:
            raise ValidationError(f"[name: {name}, id: {step.id}] {e}") from e

    def add(self, *steps: Step) -> None:
        """Add steps to the current pipeline; their order comes from their arguments."""
        self.current.add_steps(*self._setup(steps, StepKind.NORMAL))

    def background(self, *steps: Step) -> None:
        """Add steps that run for the whole pipeline and are never waited on."""
        self.current.add_steps(*self._setup(steps, StepKind.BACKGROUND))

    def when(self, *events: Event) -> None:
        self.current.when(*events)

    def new_pipeline(self, name: str, populate: Callable[["Engine"], None]) -> Pipeline:
        """
        Build a separate pipeline: populate(engine) is called with this
        engine pointed at the new pipeline. Add the result with add_pipelines().
        """
        pipeline = Pipeline(name, next(self._pipeline_ids))
        previous, self.current = self.current, pipeline
        try:
            populate(self)
        finally:
            self.current = previous
        return pipeline

    def add_pipelines(self, *pipelines: Pipeline) -> None:
        self.collection.add_pipelines(*pipelines)

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def _include_default(self) -> None:
        if self.default.steps() and DEFAULT_PIPELINE_ID not in self.collection.graph:
            self.collection.add_pipelines(self.default)

    def step_count(self) -> int:
        self._include_default()
        return sum(len(p.steps()) for p in self.collection.pipelines())

    def walker(self) -> Walker:
        """Build the graphs and pick what to walk from config.step / pipelines / event."""
        self._include_default()
        cfg = self.config

        if cfg.step is not None:
            step = self.collection.by_id(cfg.step)
            return SingleStepWalker(self.collection.pipeline_of(step.id), step)

        self.collection.build_edges(*CLIENT_PROVIDED_ARGUMENTS)

        if cfg.pipelines:
            selected = self.collection.pipelines_by_name(cfg.pipelines)
            return PipelineFilter(self.collection, [p.id for p in selected])
        if cfg.event:
            selected = self.collection.pipelines_by_event(cfg.event)
            return PipelineFilter(self.collection, [p.id for p in selected])
        return self.collection

    def execute(self, ctx: Context) -> None:
        walker = self.walker()
        self.client.done(ctx, walker)

    def done(self) -> None:
        self.execute(background_context())
