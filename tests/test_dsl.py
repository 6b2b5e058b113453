from __future__ import annotations

import io
import os
import sys
import threading
import time

import pytest

from pipewright.context import background as background_context
from pipewright.dsl import NOOP_STEP, background, combine, sh, step
from pipewright.errors import BatchTimeoutError, CancelledError, ExecutionError
from pipewright.model import ActionOpts, StepKind
from pipewright.pipeline import Pipeline
from pipewright.state.argument import string_argument
from pipewright.waitgroup import WaitGroup

A = string_argument("a")
B = string_argument("b")


def _opts(tmp_path, state=None):
    return ActionOpts(stdout=io.StringIO(), stderr=io.StringIO(), state=state, path=str(tmp_path))


def test_step_and_background():
    s = step("build", image="gcc", requires=[A], provides=[B])
    assert s.required_args == (A,)
    assert s.provided_args == (B,)
    assert s.kind == StepKind.NORMAL
    assert background("db", provides=[A]).is_background()


def test_step_builders_return_copies():
    s = step("build")
    t = s.with_image("gcc").with_name("compile").requires(A).provides(B)
    assert s.image is None and s.name == "build"
    assert (t.name, t.image, t.required_args, t.provided_args) == ("compile", "gcc", (A,), (B,))


@pytest.mark.skipif(sys.platform == "win32", reason="posix shell")
def test_sh_streams_output(tmp_path):
    (tmp_path / "sub").mkdir()
    opts = _opts(tmp_path)
    sh("pwd", "pwd && echo $GREETING", cwd="sub", env={"GREETING": "hi"}).action(background_context(), opts)
    lines = opts.stdout.getvalue().splitlines()
    assert lines[0].endswith("sub")
    assert lines[1] == "hi"


@pytest.mark.skipif(sys.platform == "win32", reason="posix shell")
def test_sh_failure(tmp_path):
    with pytest.raises(ExecutionError) as exc:
        sh("fails", "exit 3").action(background_context(), _opts(tmp_path))
    assert exc.value.details == {"exit_code": 3}
    assert exc.value.step == "fails"


def _process_gone(pid, within):
    deadline = time.monotonic() + within
    while time.monotonic() < deadline:
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return True
        time.sleep(0.02)
    return False


@pytest.mark.skipif(sys.platform == "win32", reason="posix shell")
def test_sh_is_killed_when_batch_times_out(tmp_path, ctx):
    opts = _opts(tmp_path)
    wg = WaitGroup(0.2)
    wg.add_step(sh("slow", "echo $$; exec sleep 30"), opts)
    started = time.monotonic()
    with pytest.raises(BatchTimeoutError) as exc:
        wg.wait(ctx)
    assert exc.value.pending == ["slow"]
    assert time.monotonic() - started < 1

    pid = int(opts.stdout.getvalue().split()[0])
    assert _process_gone(pid, within=1.5)


@pytest.mark.skipif(sys.platform == "win32", reason="posix shell")
def test_sh_raises_cancelled_when_context_is_cancelled(tmp_path):
    ctx = background_context()
    threading.Timer(0.1, ctx.cancel).start()
    started = time.monotonic()
    with pytest.raises(CancelledError):
        sh("slow", "sleep 30").action(ctx, _opts(tmp_path))
    assert time.monotonic() - started < 5


@pytest.mark.skipif(sys.platform == "win32", reason="posix shell")
def test_sh_writes_to_console_line_writer(tmp_path, console):
    writer = console.line_writer("build")
    assert not hasattr(writer, "fileno")
    opts = ActionOpts(stdout=writer, stderr=writer, state=None, path=str(tmp_path))
    sh("build", "echo compiled").action(background_context(), opts)
    writer.flush()
    assert "compiled" in console.out.getvalue()


def test_combine_runs_in_order(tmp_path):
    calls = []
    combined = combine(
        step("one", lambda ctx, opts: calls.append(1), image="img", requires=[A]),
        step("two", lambda ctx, opts: calls.append(2), provides=[B]),
        step("three"),
    )
    combined.action(background_context(), _opts(tmp_path))
    assert calls == [1, 2]
    assert combined.name == "one"
    assert combined.image == "img"
    assert combined.required_args == (A,)
    assert combined.provided_args == (B,)


def test_combine_producer_with_its_consumer():
    combined = combine(
        step("build", provides=[A]),
        step("test", requires=[A, B]),
    )
    assert combined.required_args == (B,)
    assert combined.provided_args == (A,)

    p = Pipeline("test", 1)
    p.add_steps(step("make-b", provides=[B]).with_id(1), combined.with_id(2))
    p.build_edges()
    assert [n.id for n in p.graph.parents(2)] == [1]


def test_combine_stops_when_cancelled(tmp_path):
    ctx = background_context()
    calls = []

    def first(ctx_, opts):
        calls.append(1)
        ctx.cancel()

    combined = combine(step("one", first), step("two", lambda c, o: calls.append(2)))
    with pytest.raises(CancelledError):
        combined.action(ctx, _opts(tmp_path))
    assert calls == [1]


def test_combine_needs_steps():
    with pytest.raises(ValueError):
        combine()


def test_noop_step(tmp_path):
    assert NOOP_STEP.action(background_context(), _opts(tmp_path)) is None
