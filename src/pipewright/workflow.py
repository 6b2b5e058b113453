# workflow.py
from __future__ import annotations

import runpy
from pathlib import Path
from typing import Callable, List

from .engine import Engine

WorkflowFn = Callable[[Engine], None]

DEFAULT_WORKFLOW = "pipewright_workflow.py"


def find_workflow_files(root: str | Path = ".") -> List[Path]:
    """pipewright_workflow.py first, then any other *_workflow.py in root."""
    root = Path(root)
    found: List[Path] = []

    default_workflow = root / DEFAULT_WORKFLOW
    if default_workflow.exists():
        found.append(default_workflow)

    for path in sorted(root.glob("*_workflow.py")):
        if path != default_workflow:
            found.append(path)

    return found


def load_workflow(path: str | Path) -> WorkflowFn:
    """
    Load a workflow from a python file path.

    The file must define workflow(engine), which adds steps and pipelines
    to the engine it is given.
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")
    if wf_path.suffix != ".py":
        raise ValueError(f"Workflow must be a .py file, got: {wf_path.name}")

    module_name = f"pipewright_workflow_{wf_path.stem}"
    globals_dict = runpy.run_path(str(wf_path), run_name=module_name)

    fn = globals_dict.get("workflow")
    if not callable(fn):
        raise TypeError(
            f"{wf_path.name} must define a workflow(engine) function, "
            "e.g. `def workflow(engine): engine.add(step(...))`"
        )
    return fn
