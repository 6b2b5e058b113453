# src/pipewright/dsl.py
from __future__ import annotations

import os
import signal
import subprocess
import threading
from typing import Dict, Iterable, Optional

from .context import Context
from .errors import ExecutionError
from .model import Action, ActionOpts, Step, StepKind
from .state.argument import Argument, without


# ---------------------------------------------------------------------
# Step helpers
# ---------------------------------------------------------------------

def step(
    name: str,
    action: Optional[Action] = None,
    *,
    image: Optional[str] = None,
    requires: Iterable[Argument] = (),
    provides: Iterable[Argument] = (),
) -> Step:
    """Create a step. Ids are assigned when the step is added to an engine."""
    return Step(
        name=name,
        action=action,
        image=image,
        required_args=tuple(requires),
        provided_args=tuple(provides),
    )


def background(
    name: str,
    action: Optional[Action] = None,
    *,
    image: Optional[str] = None,
    provides: Iterable[Argument] = (),
) -> Step:
    """A step that runs alongside the whole pipeline, e.g. a service."""
    return Step(
        name=name,
        action=action,
        image=image,
        provided_args=tuple(provides),
        kind=StepKind.BACKGROUND,
    )


# Seconds a cancelled command gets between SIGTERM and SIGKILL.
KILL_GRACE = 5.0
# How often a running command checks its context.
POLL_INTERVAL = 0.1


def _pump(src, dst) -> None:
    for line in src:
        dst.write(line)


def _signal_group(proc: subprocess.Popen, sig: int) -> None:
    try:
        os.killpg(proc.pid, sig)
    except ProcessLookupError:
        pass  # group already gone


def _stop(proc: subprocess.Popen) -> None:
    """SIGTERM the command's process group, then SIGKILL it if it lingers."""
    if os.name != "posix":
        proc.kill()
        proc.wait()
        return
    _signal_group(proc, signal.SIGTERM)
    try:
        proc.wait(timeout=KILL_GRACE)
    except subprocess.TimeoutExpired:
        _signal_group(proc, signal.SIGKILL)
        proc.wait()


def sh(
    name: str,
    cmd: str,
    *,
    cwd: str | None = None,
    env: Optional[Dict[str, str]] = None,
    image: Optional[str] = None,
    requires: Iterable[Argument] = (),
    provides: Iterable[Argument] = (),
) -> Step:
    """
    Create a step that runs a shell command from the pipeline's path.

    Output (stdout and stderr merged) is copied line by line to opts.stdout.
    The command runs in its own process group; when the context is
    cancelled the whole group is terminated and CancelledError is raised.
    """

    def _run(ctx: Context, opts: ActionOpts) -> None:
        run_env = os.environ.copy()
        run_env.update(env or {})
        workdir = os.path.join(opts.path, cwd or ".")

        proc = subprocess.Popen(
            cmd,
            shell=True,
            cwd=workdir,
            env=run_env,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )
        reader = threading.Thread(
            target=_pump,
            args=(proc.stdout, opts.stdout),
            name=f"pipewright-sh-{name}",
            daemon=True,
        )
        reader.start()

        stopped = False
        while proc.poll() is None:
            if ctx.wait(POLL_INTERVAL):
                _stop(proc)
                stopped = True
                break
        reader.join()
        proc.stdout.close()

        if stopped:
            ctx.check()
        code = proc.returncode
        if code != 0:
            raise ExecutionError(
                f"command failed (exit={code}): {cmd}",
                step=name,
                details={"exit_code": code},
            )

    return step(name, _run, image=image, requires=requires, provides=provides)


# ---------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------

def _noop(ctx: Context, opts: ActionOpts) -> None:
    return None


NOOP_STEP = Step(name="no op", action=_noop)


def combine(*steps: Step) -> Step:
    """
    Merge steps into one that runs their actions in order.
    Name and image come from the first step; arguments are merged, and a
    requirement one of the parts provides is dropped.
    """
    if not steps:
        raise ValueError("combine() needs at least one step")

    actions = [s.action for s in steps if s.action is not None]
    provided = tuple(dict.fromkeys(a for s in steps for a in s.provided_args))
    required = without(dict.fromkeys(a for s in steps for a in s.required_args), provided)

    def _run(ctx: Context, opts: ActionOpts) -> None:
        for action in actions:
            ctx.check()
            action(ctx, opts)

    return Step(
        name=steps[0].name,
        action=_run,
        image=steps[0].image,
        required_args=tuple(required),
        provided_args=provided,
    )
