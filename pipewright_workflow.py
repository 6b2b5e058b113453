# pipewright_workflow.py
# Workflow for pipewright itself: lint, test, build, and a release pipeline
# that only runs for tags.
from __future__ import annotations

from pipewright.dsl import sh, step
from pipewright.model import ActionOpts, git_tag_event
from pipewright.state.argument import BUILD_ID, WORKING_DIR, directory_argument, string_argument

PYTHON_IMAGE = "python:3.12-slim"

LINT_OK = string_argument("lint-ok")
TESTS_OK = string_argument("tests-ok")
DIST = directory_argument("dist")


def _mark(arg):
    def _run(ctx, opts: ActionOpts) -> None:
        opts.state.set_string(arg, "true")

    return _run


def _publish(ctx, opts: ActionOpts) -> None:
    dist = opts.state.get_directory(DIST)
    for path in sorted(dist.iterdir()):
        opts.stdout.write(f"would publish {path.name} for build {opts.build_id}\n")


def workflow(engine):
    # Lint and test run in the same batch: neither requires the other.
    engine.add(
        sh("ruff", "ruff check . || echo 'ruff not available, skipping'", image=PYTHON_IMAGE),
        step("lint-done", _mark(LINT_OK), image=PYTHON_IMAGE, provides=[LINT_OK]),
        sh("pytest", "pytest -q", image=PYTHON_IMAGE, requires=[WORKING_DIR]),
        step("tests-done", _mark(TESTS_OK), image=PYTHON_IMAGE, provides=[TESTS_OK]),
    )

    def _build(ctx, opts: ActionOpts) -> None:
        out = sh("build", "python -m pip wheel --no-deps -w dist .").action
        out(ctx, opts)
        opts.state.set_directory(DIST, f"{opts.path}/dist")

    engine.add(
        step(
            "build",
            _build,
            image=PYTHON_IMAGE,
            requires=[LINT_OK, TESTS_OK, BUILD_ID],
            provides=[DIST],
        ),
    )

    def _release(e) -> None:
        e.when(git_tag_event())
        e.add(
            step("package", _build, image=PYTHON_IMAGE, provides=[DIST]),
            step("publish", _publish, image=PYTHON_IMAGE, requires=[DIST]),
        )

    engine.add_pipelines(engine.new_pipeline("release", _release))
