# cli.py
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
import pydantic

from .clients import new_client
from .clients.base import Client
from .clients.local import LocalClient
from .clients.plan import PlanClient
from .config import RunConfig
from .context import background
from .dag import ROOT_ID, Node
from .engine import Engine
from .errors import PipewrightError
from .state.args import ArgMap
from .ui.console import Console
from .workflow import DEFAULT_WORKFLOW, find_workflow_files, load_workflow


def discover_workflow(console: Console, workflow_arg: str | None) -> Path:
    """
    Discover workflow file from argument or default.

    Raises:
        SystemExit: If workflow cannot be found or multiple workflows exist
    """
    if workflow_arg:
        workflow_path = Path(workflow_arg)
        if not workflow_path.exists() and workflow_path.suffix != ".py":
            workflow_path = Path(str(workflow_path) + ".py")
        if not workflow_path.exists():
            console.print_error(
                "Workflow file not found",
                f"Could not find workflow file: {workflow_arg}",
                suggestion="Create a workflow file or specify a different path:\n  pipewright run --workflow my_workflow.py",
            )
            sys.exit(1)
        return workflow_path

    workflow_files = find_workflow_files()

    if len(workflow_files) == 0:
        console.print_error(
            "No workflow file found",
            "Could not find any workflow files.",
            details=["Looked for:", f"  {DEFAULT_WORKFLOW}", "  *_workflow.py"],
            suggestion=f"Create a workflow file:\n  {DEFAULT_WORKFLOW}\n\nOr specify a workflow explicitly:\n  pipewright run --workflow my_workflow.py",
        )
        sys.exit(1)

    if len(workflow_files) > 1:
        console.print_error(
            "Multiple workflow files found",
            "Found multiple workflow files. Please specify which one to use:",
            details=[str(f) for f in workflow_files],
            suggestion=f"Specify a workflow explicitly:\n  pipewright run --workflow {DEFAULT_WORKFLOW}",
        )
        sys.exit(1)

    return workflow_files[0]


def build_config(console: Console, **options) -> RunConfig:
    """RunConfig from command line options; exits with 2 on invalid options."""
    try:
        options["args"] = dict(ArgMap.parse(options.pop("arg", ()) or ()))
        options["pipelines"] = list(options.pop("pipeline", ()) or ()) or None
        if options.pop("no_stdin", False):
            options["can_stdin_prompt"] = False
        return RunConfig.from_env(**options)
    except (pydantic.ValidationError, ValueError, PipewrightError) as e:
        console.print_error("Invalid options", str(e))
        sys.exit(2)


def load_engine(console: Console, workflow_path: Path, client: Client, config: RunConfig) -> Engine:
    engine = Engine(client, config, console, name=workflow_path.stem)
    load_workflow(workflow_path)(engine)
    return engine


def state_options(fn):
    """Options shared by every command that builds a run."""
    options = [
        click.option("--workflow", "-w", default=None, help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW} if present)"),
        click.option("--build-id", "-b", default=None, help="Unique identifier for this run (random if not given)"),
        click.option("--arg", "-a", multiple=True, help="Pre-available argument value, 'key=value'. Repeatable"),
        click.option("--step", default=None, type=int, help="Run only the step with this id"),
        click.option("--pipeline", "-p", multiple=True, help="Run only the named pipeline(s). Repeatable"),
        click.option("--event", "-e", default=None, help="Run only pipelines triggered by this event"),
        click.option("--path", default=".", show_default=True, help="Working directory of the pipeline"),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _fail(console: Console, e: BaseException) -> None:
    if isinstance(e, KeyboardInterrupt):
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    if isinstance(e, PipewrightError):
        console.print_error(type(e).__name__, str(e))
        if console.debug:
            console.print_exception(e)
    else:
        console.print_exception(e)
    sys.exit(1)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """pipewright: pipelines as code with typed steps, dependency graph, parallel batches."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["console"] = Console(debug=debug)


@cli.command()
@state_options
@click.option("--client", "-c", default=None, help="Client that runs the pipeline: local|plan (default: local)")
@click.option("--state", "-s", default=None, help="State location: file://, dir:// or redis:// URL")
@click.option("--no-stdin", is_flag=True, default=False, help="Never prompt for missing arguments")
@click.option("--timeout", default=None, type=float, help="Seconds each batch of steps may run")
@click.pass_context
def run(ctx, workflow, build_id, arg, step, pipeline, event, path, client, state, no_stdin, timeout):
    """Run a pipewright workflow."""
    console: Console = ctx.obj["console"]
    workflow_path = discover_workflow(console, workflow)
    config = build_config(
        console,
        client=client,
        state=state,
        build_id=build_id,
        arg=arg,
        step=step,
        pipeline=pipeline,
        event=event,
        path=path,
        no_stdin=no_stdin,
        timeout=timeout,
        debug=ctx.obj["debug"],
    )

    runner: Optional[Client] = None
    try:
        runner = new_client(config, console)
        engine = load_engine(console, workflow_path, runner, config)
        step_count = engine.step_count()
        console.print_run_started(
            workflow=workflow_path.name,
            pipeline_count=len(engine.collection.pipelines()),
            step_count=step_count,
            build_id=config.build_id,
        )
        engine.execute(background())
    except (KeyboardInterrupt, Exception) as e:
        if isinstance(runner, LocalClient):
            console.print_results(runner.results)
        _fail(console, e)

    if isinstance(runner, LocalClient):
        console.print_results(runner.results)


@cli.command()
@state_options
@click.option("--output", "-o", default=None, type=click.Path(dir_okay=False, writable=True), help="Write the plan here instead of stdout")
@click.pass_context
def plan(ctx, workflow, build_id, arg, step, pipeline, event, path, output):
    """Print the execution plan of a workflow as YAML without running it."""
    console: Console = ctx.obj["console"]
    workflow_path = discover_workflow(console, workflow)
    config = build_config(
        console,
        client="plan",
        build_id=build_id,
        arg=arg,
        step=step,
        pipeline=pipeline,
        event=event,
        path=path,
        debug=ctx.obj["debug"],
    )

    try:
        if output:
            with open(output, "w", encoding="utf-8") as f:
                engine = load_engine(console, workflow_path, PlanClient(config, console, output=f), config)
                engine.execute(background())
            console.print_info(f"Plan written to {output}")
        else:
            engine = load_engine(console, workflow_path, PlanClient(config, console), config)
            engine.execute(background())
    except (KeyboardInterrupt, Exception) as e:
        _fail(console, e)


@cli.command()
@click.option("--workflow", "-w", default=None, help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW} if present)")
@click.pass_context
def graph(ctx, workflow):
    """Print the pipeline and step dependency trees of a workflow."""
    console: Console = ctx.obj["console"]
    workflow_path = discover_workflow(console, workflow)
    config = RunConfig(client="plan", debug=ctx.obj["debug"])

    try:
        engine = load_engine(console, workflow_path, PlanClient(config, console, require_images=False), config)
        engine.walker()
    except (KeyboardInterrupt, Exception) as e:
        _fail(console, e)

    collection = engine.collection
    console.print_header(f"Workflow: {workflow_path.name}")

    def _print_pipeline(node: Node) -> None:
        if node.id == ROOT_ID:
            return
        p = node.value
        console.print_info(f"pipeline {p.name} (id={p.id})")
        for parent in collection.graph.parents(node.id):
            if parent.id != ROOT_ID:
                console.print_info(f"  after: {parent.value.name}")

        def _print_step(step_node: Node) -> None:
            if step_node.id == ROOT_ID:
                return
            s = step_node.value
            parents = [n.value.name for n in p.graph.parents(step_node.id) if n.id != ROOT_ID]
            kind = " [background]" if s.is_background() else ""
            after = f" <- {', '.join(parents)}" if parents else ""
            console.print_info(f"  - {s.name} (id={s.id}){kind}{after}")

        p.graph.depth_first_search(ROOT_ID, _print_step)

    collection.graph.depth_first_search(ROOT_ID, _print_pipeline)


if __name__ == "__main__":
    cli()
