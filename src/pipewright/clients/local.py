# clients/local.py
from __future__ import annotations

import sys
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, TextIO

from ..config import RunConfig
from ..context import Context
from ..errors import CancelledError, ExecutionError
from ..model import ActionOpts, Step
from ..pipeline import Pipeline
from ..state.argument import BUILD_ID, SOURCE_FS, WORKING_DIR
from ..state.base import Handler
from ..state.default import new_default_state
from ..state.observer import Observer
from ..ui.console import Console
from ..waitgroup import WaitGroup
from ..walker import Walker
from ..wrappers import LogWrapper


class LocalClient:
    """
    Runs every action in this process.

    Pipelines in the same batch run side by side; inside a pipeline each
    batch of steps goes through a WaitGroup bounded by config.timeout.
    Background steps start with the first batch and are cancelled when
    their pipeline finishes.
    """

    def __init__(
        self,
        config: RunConfig,
        console: Console,
        state: Optional[Handler] = None,
        stdin: Optional[TextIO] = None,
    ):
        self.config = config
        self.console = console
        self.state = Observer(state if state is not None else new_default_state(config, console, stdin))
        self.wrapper = LogWrapper(console)
        self.results: Dict[str, str] = {}
        self._walker: Optional[Walker] = None

    def validate(self, step: Step) -> None:
        return None

    def known_values(self) -> None:
        """Store the arguments every client provides before any step runs."""
        path = str(Path(self.config.path).resolve())
        self.state.set_string(BUILD_ID, self.config.build_id)
        self.state.set_string(WORKING_DIR, path)
        self.state.set_directory(SOURCE_FS, path)

    def opts(self) -> ActionOpts:
        return ActionOpts(
            stdout=sys.stdout,
            stderr=sys.stderr,
            state=self.state,
            console=self.console,
            path=self.config.path,
            build_id=self.config.build_id,
            version=self.config.version,
        )

    def done(self, ctx: Context, walker: Walker) -> None:
        self._walker = walker
        self.known_values()
        walker.walk_pipelines(ctx, self._run_pipelines)

    def _run_pipelines(self, ctx: Context, *pipelines: Pipeline) -> None:
        if len(pipelines) == 1:
            self._run_pipeline(ctx, pipelines[0])
            return

        wg = WaitGroup(None)
        for p in pipelines:
            wg.add(p.name, lambda ctx, p=p: self._run_pipeline(ctx, p))
        wg.wait(ctx)

    def _run_pipeline(self, ctx: Context, pipeline: Pipeline) -> None:
        self.console.print_pipeline_start(pipeline.name)
        run = _PipelineRun(self, pipeline, ctx.with_cancel())
        try:
            self._walker.walk_steps(ctx, pipeline.id, run.batch)
        except ExecutionError as e:
            e.pipeline = e.pipeline or pipeline.name
            if e.step:
                self.results[e.step] = "failed"
            raise
        finally:
            run.stop_background()
            run.background_ctx.detach()


class _PipelineRun:
    """Per-pipeline execution state: batch counter and background steps."""

    def __init__(self, client: LocalClient, pipeline: Pipeline, background_ctx: Context):
        self.client = client
        self.pipeline = pipeline
        self.index = 0
        self.background_ctx = background_ctx
        self._background: Dict[Future, str] = {}
        self._pool: Optional[ThreadPoolExecutor] = None

    def batch(self, ctx: Context, *steps: Step) -> None:
        client = self.client
        self.index += 1
        names = [s.name for s in steps]
        client.console.print_batch(self.pipeline.name, self.index, names)

        background = [s for s in steps if s.is_background()]
        if background:
            self.start_background(background)

        wg = WaitGroup(client.config.timeout)
        for step in steps:
            if step.is_background():
                continue
            if step.action is None:
                client.console.print_skipped(step.name, "no action")
                client.results[step.name] = "skipped"
                continue
            wg.add_step(client.wrapper.wrap_step(step), client.opts())
        wg.wait(ctx)

        for step in steps:
            if not step.is_background() and step.action is not None:
                client.results[step.name] = "ok"

    def start_background(self, steps: List[Step]) -> None:
        client = self.client
        runnable = [s for s in steps if s.action is not None]
        if not runnable:
            return
        self._pool = ThreadPoolExecutor(
            max_workers=len(runnable),
            thread_name_prefix=f"pipewright-bg-{self.pipeline.name}",
        )
        for step in runnable:
            wrapped = client.wrapper.wrap_step(step)
            fut = self._pool.submit(wrapped.action, self.background_ctx, client.opts())
            self._background[fut] = step.name

    def stop_background(self) -> None:
        self.background_ctx.cancel()
        for fut, name in self._background.items():
            if not fut.done():
                self.client.results.setdefault(name, "stopped")
                continue
            exc = fut.exception()
            if exc is None or isinstance(exc, CancelledError):
                self.client.results.setdefault(name, "ok")
            else:
                self.client.console.print_warning(f"background step '{name}' failed: {exc}")
                self.client.results[name] = "failed"
        if self._pool is not None:
            self._pool.shutdown(wait=False, cancel_futures=True)
