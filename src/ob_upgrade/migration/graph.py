"""Hash-addressed migration graph engine.

A migration graph has one vertex per released version of ob (identified by
an opaque hash computed by the graph's hash script) and one directed edge
per step between versions. Edges carry free-text actions whose meaning is
graph specific: instructions for the user in the upgrade graph, a boolean
sentinel in the handoff graph.

The graph is immutable. Two queries run over the same representation:

- ``find_equivalence_path`` ignores edge direction and is used to measure
  how far apart two versions are;
- ``run_forward_migration`` follows edge direction and yields the actions
  to apply, in order.

Malformed graphs can be constructed, but every path query on them raises
``GraphStructureError``.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

import networkx as nx

from ob_upgrade.exceptions import ActionDecodeError, GraphStructureError
from ob_upgrade.migration.names import GraphName

__all__ = ["Edge", "MigrationGraph"]


@dataclass(frozen=True)
class Edge:
    """Directed edge ``source -> target`` labelled with an action."""

    source: str
    target: str
    action: str


class MigrationGraph:
    """Immutable migration graph with designated first and last vertices."""

    def __init__(
        self,
        name: GraphName,
        vertices: Iterable[str],
        edges: Iterable[Edge],
        first: str | None = None,
        last: str | None = None,
    ) -> None:
        self._name = name
        self._vertex_list: tuple[str, ...] = tuple(vertices)
        self._vertices: frozenset[str] = frozenset(self._vertex_list)
        self._edges: tuple[Edge, ...] = tuple(edges)
        self._first = first
        self._last = last

        # Dangling and repeated edges stay in ``_edges`` and are reported as
        # problems; the first edge per ordered pair is the one traversed.
        graph = nx.DiGraph()
        graph.add_nodes_from(self._vertex_list)
        for edge in self._edges:
            if edge.source in self._vertices and edge.target in self._vertices:
                if not graph.has_edge(edge.source, edge.target):
                    graph.add_edge(edge.source, edge.target, edge=edge)
        self._graph = graph
        self._problems: tuple[str, ...] = tuple(self._find_problems())

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def name(self) -> GraphName:
        return self._name

    @property
    def vertices(self) -> frozenset[str]:
        return self._vertices

    @property
    def edges(self) -> tuple[Edge, ...]:
        return self._edges

    @property
    def first(self) -> str | None:
        return self._first

    @property
    def last(self) -> str | None:
        return self._last

    @property
    def problems(self) -> tuple[str, ...]:
        """Structural problems found when the graph was built."""
        return self._problems

    @property
    def is_well_formed(self) -> bool:
        return not self._problems

    def has_vertex(self, vertex: str) -> bool:
        return vertex in self._vertices

    def ordered_vertices(self) -> tuple[str, ...]:
        """Vertices in the order they were declared."""
        return self._vertex_list

    def validate(self) -> None:
        """Raise ``GraphStructureError`` if the graph is malformed."""
        if self._problems:
            raise GraphStructureError(str(self._name), self._problems)

    def __len__(self) -> int:
        return len(self._vertices)

    def __repr__(self) -> str:
        return (
            f"MigrationGraph({self._name.value!r}, vertices={len(self._vertex_list)}, "
            f"edges={len(self._edges)}, first={self._first!r}, last={self._last!r})"
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_equivalence_path(self, a: str, b: str) -> list[Edge] | None:
        """Return the shortest path between *a* and *b* ignoring direction.

        The path is always computed from the smaller hash to the larger one
        and reversed when needed, so swapping *a* and *b* yields the same
        edges in reverse order.

        Returns:
            Edges from *a* to *b* (each in its declared orientation), ``[]``
            when ``a == b``, or ``None`` when no path exists.

        Raises:
            GraphStructureError: If the graph is malformed.
        """
        self.validate()
        if a not in self._vertices or b not in self._vertices:
            return None
        if a == b:
            return []

        start, end = (a, b) if a <= b else (b, a)
        hops = self._smallest_shortest_path(self._graph.to_undirected(as_view=True), start, end)
        if hops is None:
            return None
        edges = [self._edge_between(u, v) for u, v in zip(hops, hops[1:])]
        if start != a:
            edges.reverse()
        return edges

    def run_forward_migration(self, from_hash: str, to_hash: str) -> list[tuple[str, str]] | None:
        """Return the ordered migration steps from *from_hash* to *to_hash*.

        Each step is ``(hash, action)``: the vertex reached and the action
        on the edge taken to reach it.

        Returns:
            ``[]`` when the hashes are equal, ``None`` when no directed path
            exists.

        Raises:
            GraphStructureError: If the graph is malformed.
        """
        self.validate()
        if from_hash not in self._vertices or to_hash not in self._vertices:
            return None
        if from_hash == to_hash:
            return []

        hops = self._smallest_shortest_path(self._graph, from_hash, to_hash)
        if hops is None:
            return None
        return [(v, self._graph.edges[u, v]["edge"].action) for u, v in zip(hops, hops[1:])]

    def classify_path(self, path: Sequence[Edge], classify: Callable[[str], bool]) -> list[bool]:
        """Decode every edge action on *path* with a graph-specific classifier.

        Raises:
            ActionDecodeError: If *classify* rejects an action.
        """
        results = []
        for edge in path:
            try:
                results.append(classify(edge.action))
            except ValueError as exc:
                raise ActionDecodeError(str(self._name), edge.action) from exc
        return results

    def with_new_last(self, vertex: str, action: str) -> "MigrationGraph":
        """Return a copy with *vertex* appended after the current last vertex."""
        edges = list(self._edges)
        if self._last is not None:
            edges.append(Edge(self._last, vertex, action))
        return MigrationGraph(
            self._name,
            [*self._vertex_list, vertex],
            edges,
            first=self._first if self._first is not None else vertex,
            last=vertex,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _edge_between(self, u: str, v: str) -> Edge:
        if self._graph.has_edge(u, v):
            return self._graph.edges[u, v]["edge"]
        return self._graph.edges[v, u]["edge"]

    @staticmethod
    def _smallest_shortest_path(graph: nx.Graph, start: str, end: str) -> list[str] | None:
        """Lexicographically smallest of the shortest vertex sequences."""
        try:
            return min(nx.all_shortest_paths(graph, start, end))
        except nx.NetworkXNoPath:
            return None

    def _find_problems(self) -> Iterable[str]:
        for vertex, count in sorted(Counter(self._vertex_list).items()):
            if count > 1:
                yield f"duplicate vertex {vertex} ({count} occurrences)"

        for label, designated in (("first", self._first), ("last", self._last)):
            if designated is not None and designated not in self._vertices:
                yield f"{label} vertex {designated} is not in the graph"

        seen: set[tuple[str, str]] = set()
        for edge in self._edges:
            if edge.source == edge.target:
                yield f"self-loop on {edge.source}"
                continue
            for endpoint in (edge.source, edge.target):
                if endpoint not in self._vertices:
                    yield f"edge {edge.source} -> {edge.target} references unknown vertex {endpoint}"
            key = (edge.source, edge.target)
            if key in seen:
                yield f"duplicate edge {edge.source} -> {edge.target}"
            seen.add(key)

        if not nx.is_directed_acyclic_graph(self._graph):
            cycle = nx.find_cycle(self._graph)
            yield "cycle " + " -> ".join([u for u, _ in cycle] + [cycle[0][0]])
