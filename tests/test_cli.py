from __future__ import annotations

import textwrap

import pytest
import yaml
from click.testing import CliRunner

from pipewright.cli import cli

WORKFLOW = textwrap.dedent(
    """
    from pipewright.dsl import step
    from pipewright.state.argument import string_argument

    VALUE = string_argument("value")
    NAME = string_argument("name")


    def make(ctx, opts):
        opts.state.set_string(VALUE, "42")


    def use(ctx, opts):
        opts.stdout.write("value=" + opts.state.get_string(VALUE) + "\\n")
        opts.stdout.write("name=" + opts.state.get_string(NAME) + "\\n")


    def workflow(engine):
        engine.add(
            step("make", make, image="alpine:3", provides=[VALUE]),
            step("use", use, image="alpine:3", requires=[VALUE]),
        )
    """
)

FAILING = textwrap.dedent(
    """
    from pipewright.dsl import sh


    def workflow(engine):
        engine.add(sh("fails", "exit 4", image="alpine:3"))
    """
)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workflow_file(tmp_path):
    path = tmp_path / "ci_workflow.py"
    path.write_text(WORKFLOW)
    return path


def _run_args(tmp_path, workflow_file, *extra):
    return [
        "run",
        "--workflow", str(workflow_file),
        "--state", (tmp_path / "state").as_uri(),
        "--path", str(tmp_path),
        "--no-stdin",
        *extra,
    ]


def test_run(runner, tmp_path, workflow_file):
    result = runner.invoke(cli, _run_args(tmp_path, workflow_file, "--arg", "name=pipewright", "-b", "b1"))
    assert result.exit_code == 0, result.output
    assert "RUN STARTED" in result.output
    assert "Build: b1" in result.output
    assert "[use] value=42" in result.output
    assert "[use] name=pipewright" in result.output
    assert "RESULTS" in result.output


def test_run_missing_argument_fails(runner, tmp_path, workflow_file):
    result = runner.invoke(cli, _run_args(tmp_path, workflow_file))
    assert result.exit_code == 1
    assert "ExecutionError" in result.output
    assert "name" in result.output


def test_run_failing_command(runner, tmp_path):
    path = tmp_path / "failing_workflow.py"
    path.write_text(FAILING)
    result = runner.invoke(cli, _run_args(tmp_path, path))
    assert result.exit_code == 1
    assert "exit_code=4" in result.output
    assert "fails: FAILED" in result.output


def test_run_single_step(runner, tmp_path, workflow_file):
    result = runner.invoke(cli, _run_args(tmp_path, workflow_file, "--step", "1"))
    assert result.exit_code == 0, result.output
    assert "STEP: make" in result.output
    assert "STEP: use" not in result.output


def test_invalid_options(runner, tmp_path, workflow_file):
    result = runner.invoke(cli, _run_args(tmp_path, workflow_file, "--arg", "novalue"))
    assert result.exit_code == 2
    assert "Invalid options" in result.output

    result = runner.invoke(cli, _run_args(tmp_path, workflow_file, "--step", "1", "--pipeline", "x"))
    assert result.exit_code == 2


def test_missing_workflow(runner, tmp_path):
    result = runner.invoke(cli, ["run", "--workflow", str(tmp_path / "nope")])
    assert result.exit_code == 1
    assert "Workflow file not found" in result.output


def test_plan(runner, tmp_path, workflow_file):
    result = runner.invoke(cli, ["plan", "--workflow", str(workflow_file), "-b", "p1"])
    assert result.exit_code == 0, result.output
    doc = yaml.safe_load(result.output)
    assert doc["build_id"] == "p1"
    [stage] = doc["stages"]
    [pipeline] = stage["pipelines"]
    assert pipeline["name"] == "ci_workflow"
    assert [[s["name"] for s in b] for b in pipeline["batches"]] == [["make"], ["use"]]


def test_plan_to_file(runner, tmp_path, workflow_file):
    out = tmp_path / "plan.yaml"
    result = runner.invoke(cli, ["plan", "--workflow", str(workflow_file), "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert yaml.safe_load(out.read_text())["stages"]


def test_graph(runner, workflow_file):
    result = runner.invoke(cli, ["graph", "--workflow", str(workflow_file)])
    assert result.exit_code == 0, result.output
    assert "pipeline ci_workflow (id=1)" in result.output
    assert "  - make (id=1)" in result.output
    assert "  - use (id=2) <- make" in result.output
