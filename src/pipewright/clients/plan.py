# clients/plan.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, TextIO

import yaml

from ..config import RunConfig
from ..context import Context
from ..errors import ValidationError
from ..model import Step
from ..pipeline import Pipeline
from ..ui.console import Console
from ..walker import Walker


def _step_doc(step: Step) -> Dict[str, Any]:
    doc: Dict[str, Any] = {"id": step.id, "name": step.name, "image": step.image}
    if step.is_background():
        doc["background"] = True
    if step.required_args:
        doc["requires"] = [a.key for a in step.required_args]
    if step.provided_args:
        doc["provides"] = [a.key for a in step.provided_args]
    return doc


class PlanClient:
    """
    Runs nothing. Writes the execution plan as YAML: pipelines grouped
    into stages, each pipeline's steps grouped into batches, in the order
    they would run.
    """

    def __init__(
        self,
        config: RunConfig,
        console: Console,
        output: Optional[TextIO] = None,
        require_images: bool = True,
    ):
        self.config = config
        self.require_images = require_images
        self.console = console
        self.output = output if output is not None else console.out
        self.document: Dict[str, Any] = {}

    def validate(self, step: Step) -> None:
        if not step.name:
            raise ValidationError(f"step {step.id} has no name")
        if self.require_images and not step.image:
            raise ValidationError(f"step '{step.name}' has no image")

    def done(self, ctx: Context, walker: Walker) -> None:
        stages: List[Dict[str, Any]] = []

        def _pipelines(ctx: Context, *pipelines: Pipeline) -> None:
            stage: List[Dict[str, Any]] = []
            for p in pipelines:
                batches: List[List[Dict[str, Any]]] = []
                walker.walk_steps(ctx, p.id, lambda ctx, *steps: batches.append([_step_doc(s) for s in steps]))
                doc: Dict[str, Any] = {"id": p.id, "name": p.name, "batches": batches}
                if p.events:
                    doc["events"] = [{"name": e.name, "filters": e.filter_strings()} for e in p.events]
                if p.dependencies:
                    doc["after"] = [d.name for d in p.dependencies]
                stage.append(doc)
            stages.append({"pipelines": stage})

        walker.walk_pipelines(ctx, _pipelines)

        self.document = {
            "build_id": self.config.build_id,
            "version": self.config.version,
            "stages": stages,
        }
        yaml.safe_dump(self.document, self.output, sort_keys=False, default_flow_style=False)
