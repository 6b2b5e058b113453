# collection.py
from __future__ import annotations

from typing import Callable, Dict, List, Optional

from .context import Context
from .dag import ROOT_ID, Graph, StopWalk
from .errors import NoPipelineProviderError, NotFoundError
from .model import Event, Step
from .pipeline import Pipeline, register_provider
from .state.argument import Argument, ArgumentType


class Collection:
    """
    Graph of pipelines, ordered by the arguments they require and provide
    and by explicit dependencies. Each node holds a Pipeline, which in turn
    holds the graph of its steps.
    """

    def __init__(self):
        self.graph: Graph[Pipeline] = Graph()
        self.providers: Dict[Argument, int] = {}
        self.root: List[int] = []

    def __repr__(self) -> str:
        return f"Collection(pipelines={len(self.graph) - 1})"

    def pipelines(self) -> List[Pipeline]:
        return [n.value for n in self.graph.nodes if n.id != ROOT_ID]

    def add_pipelines(self, *pipelines: Pipeline) -> None:
        for p in pipelines:
            for arg in p.provided_args:
                register_provider(self.providers, arg, p.id)
            self.graph.add_node(p.id, p)
            if not p.required_args and not p.dependencies:
                self.root.append(p.id)

    def add_steps(self, pipeline_id: int, *steps: Step) -> None:
        self.pipeline(pipeline_id).add_steps(*steps)

    def add_events(self, pipeline_id: int, *events: Event) -> None:
        self.pipeline(pipeline_id).events.extend(events)

    def build_edges(self, *root_args: Argument) -> None:
        """
        Rebuild edges between pipelines, then inside every pipeline.
        root_args count as provided from outside at both levels.
        """
        for arg in root_args:
            self.providers.setdefault(arg, ROOT_ID)

        self.graph.clear_edges()
        for pipeline_id in self.root:
            self.graph.add_edge(ROOT_ID, pipeline_id)

        for p in self.pipelines():
            for arg in p.required_args:
                provider = self.providers.get(arg)
                if provider is None:
                    if arg.type == ArgumentType.SECRET:
                        continue
                    raise NoPipelineProviderError(p.name, arg.key)
                self._add_edge(provider, p.id)
            for dep in p.dependencies:
                self._add_edge(dep.id, p.id)

        for node in self.graph.nodes[1:]:
            if not self.graph.parents(node.id):
                self.graph.add_edge(ROOT_ID, node.id)

        self.graph.check_acyclic()

        for p in self.pipelines():
            p.build_edges(*root_args)

    def _add_edge(self, from_id: int, to_id: int) -> None:
        if not self.graph.has_edge(from_id, to_id):
            self.graph.add_edge(from_id, to_id)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def pipeline(self, pipeline_id: int) -> Pipeline:
        if pipeline_id == ROOT_ID:
            raise NotFoundError(pipeline_id)
        return self.graph.node(pipeline_id).value

    def pipelines_by_name(self, names: List[str]) -> List[Pipeline]:
        """Pipelines matching names, in the order given. Unknown names raise NotFoundError."""
        by_name = {p.name: p for p in self.pipelines()}
        out: List[Pipeline] = []
        for name in names:
            if name not in by_name:
                raise NotFoundError(name)
            out.append(by_name[name])
        return out

    def pipelines_by_event(self, event: str) -> List[Pipeline]:
        return [p for p in self.pipelines() if any(e.name == event for e in p.events)]

    def by_id(self, step_id: int) -> Step:
        """Find a step by id across every pipeline."""
        for p in self.pipelines():
            if step_id in p.graph and step_id != ROOT_ID:
                return p.by_id(step_id)
        raise NotFoundError(step_id)

    def by_name(self, name: str) -> List[Step]:
        out: List[Step] = []
        for p in self.pipelines():
            out.extend(p.by_name(name))
        return out

    def pipeline_of(self, step_id: int) -> Optional[Pipeline]:
        for p in self.pipelines():
            if step_id in p.graph and step_id != ROOT_ID:
                return p
        return None

    # ------------------------------------------------------------------
    # Walker
    # ------------------------------------------------------------------

    def walk_pipelines(self, ctx: Context, fn: Callable[..., None]) -> None:
        """Call fn(ctx, *pipelines) once per batch of pipelines, in dependency order."""
        try:
            for level in self.graph.levels():
                fn(ctx, *[n.value for n in level])
        except StopWalk:
            return

    def walk_steps(self, ctx: Context, pipeline_id: int, fn: Callable[..., None]) -> None:
        self.pipeline(pipeline_id).walk(ctx, fn)
