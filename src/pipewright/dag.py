# dag.py
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Callable, Dict, Generic, List, Optional, Set, TypeVar

from .errors import CycleError, DuplicateIDError, NotFoundError

T = TypeVar("T")

ROOT_ID = 0


class StopWalk(Exception):
    """Raised by a visit function to end a search early. Never surfaces to the caller."""


@dataclass
class Node(Generic[T]):
    id: int
    value: Optional[T] = None


@dataclass(frozen=True)
class Edge:
    from_id: int
    to_id: int


class Graph(Generic[T]):
    """
    Directed graph keyed by integer node ids.

    Node 0 always exists and acts as the synthetic root. Edges are stored
    as outgoing adjacency lists in insertion order.
    """

    def __init__(self, root: Optional[T] = None):
        self.nodes: List[Node[T]] = [Node(ROOT_ID, root)]
        self.edges: Dict[int, List[Edge]] = {}
        self._index: Dict[int, Node[T]] = {ROOT_ID: self.nodes[0]}

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._index

    def add_node(self, node_id: int, value: T) -> Node[T]:
        if node_id in self._index:
            raise DuplicateIDError(node_id)
        node = Node(node_id, value)
        self.nodes.append(node)
        self._index[node_id] = node
        return node

    def add_edge(self, from_id: int, to_id: int) -> None:
        if from_id not in self._index:
            raise NotFoundError(from_id)
        if to_id not in self._index:
            raise NotFoundError(to_id)
        self.edges.setdefault(from_id, []).append(Edge(from_id, to_id))

    def has_edge(self, from_id: int, to_id: int) -> bool:
        return any(e.to_id == to_id for e in self.edges.get(from_id, []))

    def clear_edges(self) -> None:
        self.edges = {}

    def node(self, node_id: int) -> Node[T]:
        try:
            return self._index[node_id]
        except KeyError:
            raise NotFoundError(node_id) from None

    def adj(self, node_id: int) -> List[Node[T]]:
        """Nodes one outgoing edge away from node_id."""
        if node_id not in self._index:
            raise NotFoundError(node_id)
        return [self._index[e.to_id] for e in self.edges.get(node_id, [])]

    def parents(self, node_id: int) -> List[Node[T]]:
        if node_id not in self._index:
            raise NotFoundError(node_id)
        out: List[Node[T]] = []
        for edges in self.edges.values():
            for e in edges:
                if e.to_id == node_id:
                    out.append(self._index[e.from_id])
        return out

    # ------------------------------------------------------------------
    # Searches
    # ------------------------------------------------------------------

    def breadth_first_search(self, start: int, visit: Callable[[Node[T]], None]) -> None:
        """
        Visit every node reachable from start (start included) in BFS order.
        visit may raise StopWalk to halt the search; other exceptions propagate.
        """
        q = deque([self.node(start)])
        seen: Set[int] = {start}
        try:
            while q:
                node = q.popleft()
                visit(node)
                for child in self.adj(node.id):
                    if child.id not in seen:
                        seen.add(child.id)
                        q.append(child)
        except StopWalk:
            return

    def depth_first_search(self, start: int, visit: Callable[[Node[T]], None]) -> None:
        """Recursive analogue of breadth_first_search."""
        seen: Set[int] = set()

        def _dfs(node: Node[T]) -> None:
            seen.add(node.id)
            visit(node)
            for child in self.adj(node.id):
                if child.id not in seen:
                    _dfs(child)

        try:
            _dfs(self.node(start))
        except StopWalk:
            return

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def check_acyclic(self) -> None:
        """Raise CycleError if any cycle exists, reachable from the root or not."""
        indeg: Dict[int, int] = {n.id: 0 for n in self.nodes}
        for edges in self.edges.values():
            for e in edges:
                indeg[e.to_id] += 1

        q = deque(n.id for n in self.nodes if indeg[n.id] == 0)
        processed = 0
        while q:
            node_id = q.popleft()
            processed += 1
            for e in self.edges.get(node_id, []):
                indeg[e.to_id] -= 1
                if indeg[e.to_id] == 0:
                    q.append(e.to_id)

        if processed != len(self.nodes):
            raise CycleError(sorted(n for n, d in indeg.items() if d > 0))

    def levels(self, start: int = ROOT_ID) -> List[List[Node[T]]]:
        """
        Group the nodes reachable from start into topological levels.

        A node's level is the length of the longest path from start to it,
        so every parent sits in an earlier level than its children and each
        level can run in parallel. start itself is not included. Within a
        level nodes keep their insertion order.
        """
        reachable: Set[int] = set()
        self.breadth_first_search(start, lambda n: reachable.add(n.id))

        indeg: Dict[int, int] = {node_id: 0 for node_id in reachable}
        for from_id in reachable:
            for e in self.edges.get(from_id, []):
                indeg[e.to_id] += 1

        order = {n.id: i for i, n in enumerate(self.nodes)}
        current = [start]
        processed = 1
        out: List[List[Node[T]]] = []

        while current:
            nxt: List[int] = []
            for node_id in current:
                for e in self.edges.get(node_id, []):
                    indeg[e.to_id] -= 1
                    if indeg[e.to_id] == 0:
                        nxt.append(e.to_id)
            nxt = sorted(set(nxt), key=order.__getitem__)
            processed += len(nxt)
            if nxt:
                out.append([self._index[i] for i in nxt])
            current = nxt

        if processed != len(reachable):
            raise CycleError(sorted(n for n, d in indeg.items() if d > 0))

        return out
