# wrappers.py
from __future__ import annotations

import time
from dataclasses import replace

from .context import Context
from .model import ActionOpts, Step
from .ui.console import Console


class LogWrapper:
    """Decorates step actions with start/finish output and prefixed stdout/stderr."""

    def __init__(self, console: Console):
        self.console = console

    def wrap_step(self, step: Step) -> Step:
        action = step.action
        if action is None:
            return step

        console = self.console

        def _logged(ctx: Context, opts: ActionOpts) -> None:
            console.print_step(step.name)
            stdout = console.line_writer(step.name)
            stderr = console.line_writer(step.name, err=True)
            started = time.monotonic()
            try:
                action(ctx, replace(opts, stdout=stdout, stderr=stderr))
            except Exception as e:
                stdout.flush()
                stderr.flush()
                console.print_failure(step.name, str(e))
                raise
            stdout.flush()
            stderr.flush()
            console.print_success(step.name, time.monotonic() - started)

        return replace(step, action=_logged)
