# pipeline.py
from __future__ import annotations

from typing import Callable, Dict, List, Optional

from .context import Context
from .dag import ROOT_ID, Graph, StopWalk
from .errors import AmbiguousProviderError, NoProviderError, NotFoundError
from .model import Event, Step, git_commit_event
from .state.argument import Argument, ArgumentType

StepFn = Callable[..., None]


def register_provider(providers: Dict[Argument, int], arg: Argument, node_id: int) -> None:
    """Record node_id as the only provider of arg."""
    current = providers.get(arg)
    if current is not None and current != node_id:
        raise AmbiguousProviderError(arg.key, current, node_id)
    providers[arg] = node_id


class Pipeline:
    """
    A named graph of steps.

    Steps are ordered purely by data: a step that requires an argument
    runs after the step that provides it. Node 0 is a synthetic root that
    stands for everything supplied from outside the pipeline.
    """

    def __init__(
        self,
        name: str,
        pipeline_id: int = 0,
        events: Optional[List[Event]] = None,
    ):
        self.id = pipeline_id
        self.name = name
        self.graph: Graph[Step] = Graph()
        self.providers: Dict[Argument, int] = {}
        self.root: List[int] = []
        self.events: List[Event] = list(events) if events is not None else [git_commit_event()]
        self.required_args: List[Argument] = []
        self.provided_args: List[Argument] = []
        self.dependencies: List["Pipeline"] = []

    def __repr__(self) -> str:
        return f"Pipeline({self.name!r}, id={self.id}, steps={len(self.graph) - 1})"

    # ------------------------------------------------------------------
    # Authoring
    # ------------------------------------------------------------------

    def requires(self, *args: Argument) -> "Pipeline":
        self.required_args.extend(args)
        return self

    def provides(self, *args: Argument) -> "Pipeline":
        self.provided_args.extend(args)
        return self

    def after(self, *pipelines: "Pipeline") -> "Pipeline":
        """Order this pipeline after others without a data dependency."""
        self.dependencies.extend(pipelines)
        return self

    def when(self, *events: Event) -> "Pipeline":
        self.events = list(events)
        return self

    def steps(self) -> List[Step]:
        return [n.value for n in self.graph.nodes if n.id != ROOT_ID]

    def add_steps(self, *steps: Step) -> None:
        for step in steps:
            for arg in step.provided_args:
                register_provider(self.providers, arg, step.id)
            self.graph.add_node(step.id, step)
            if step.is_background() or not step.required_args:
                self.root.append(step.id)

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def build_edges(self, *root_args: Argument) -> None:
        """
        Rebuild every edge from the provider index.

        root_args are registered as provided by node 0. Arguments provided
        by the pipeline's events are too, unless a step provides them.
        Raises NoProviderError, AmbiguousProviderError or CycleError before
        anything runs.
        """
        for arg in root_args:
            if self.providers.get(arg) is None:
                self.providers[arg] = ROOT_ID
            elif self.providers[arg] != ROOT_ID:
                raise AmbiguousProviderError(arg.key, ROOT_ID, self.providers[arg])
        for event in self.events:
            for arg in event.provides:
                self.providers.setdefault(arg, ROOT_ID)

        self.graph.clear_edges()
        for step_id in self.root:
            self.graph.add_edge(ROOT_ID, step_id)

        for node in self.graph.nodes:
            step = node.value
            if node.id == ROOT_ID or step.is_background():
                continue
            for arg in step.required_args:
                self._add_edge(self._provider_of(step, arg), step.id)

        # steps whose requirements are all resolved by the client hang off the root
        for node in self.graph.nodes[1:]:
            if not self.graph.parents(node.id):
                self.graph.add_edge(ROOT_ID, node.id)

        self.graph.check_acyclic()

    def _provider_of(self, step: Step, arg: Argument) -> Optional[int]:
        provider = self.providers.get(arg)
        if provider is not None:
            if provider != ROOT_ID and self.graph.node(provider).value.is_background():
                # background steps never become parents
                return ROOT_ID
            return provider
        if arg.type == ArgumentType.SECRET:
            return None
        if arg in self.required_args:
            return ROOT_ID
        raise NoProviderError(step.name, arg.key)

    def _add_edge(self, from_id: Optional[int], to_id: int) -> None:
        if from_id is None or self.graph.has_edge(from_id, to_id):
            return
        self.graph.add_edge(from_id, to_id)

    # ------------------------------------------------------------------
    # Walker
    # ------------------------------------------------------------------

    def batches(self) -> List[List[Step]]:
        return [[n.value for n in level] for level in self.graph.levels()]

    def walk(self, ctx: Context, fn: StepFn) -> None:
        """Call fn(ctx, *steps) once per batch, in dependency order. fn may raise StopWalk to end early."""
        try:
            for batch in self.batches():
                fn(ctx, *batch)
        except StopWalk:
            return

    def walk_steps(self, ctx: Context, pipeline_id: int, fn: StepFn) -> None:
        if pipeline_id != self.id:
            raise NotFoundError(pipeline_id)
        self.walk(ctx, fn)

    def walk_pipelines(self, ctx: Context, fn: Callable[..., None]) -> None:
        fn(ctx, self)

    def by_id(self, step_id: int) -> Step:
        return self.graph.node(step_id).value

    def by_name(self, name: str) -> List[Step]:
        return [s for s in self.steps() if s.name == name]
