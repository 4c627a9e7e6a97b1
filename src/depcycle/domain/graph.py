"""Graph model — components as nodes, typed dependency declarations as edges.

The graph is built once per analysis pass by a component model provider
and is treated as read-only by the algorithms. Parallel edges between the
same pair are allowed when their InjectionKind differs; an edge is
otherwise identified by the triple ``(source, target, kind)``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from depcycle.domain.errors import UnknownNodeError
from depcycle.domain.types import DEFAULT_KIND_PRIORITY, InjectionKind

type EdgeKey = tuple[str, str, InjectionKind]


@dataclass(frozen=True)
class Edge:
    """A directed dependency ``source -> target`` established via *kind*.

    *origin* is an opaque handle back to the declaration (for instance a
    field name). It is carried for strategies and ignored by equality.
    """

    source: str
    target: str
    kind: InjectionKind
    origin: Any = field(default=None, compare=False, hash=False)

    @property
    def key(self) -> EdgeKey:
        return (self.source, self.target, self.kind)

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target

    def sort_key(self) -> tuple[str, str, int]:
        return (self.source, self.target, DEFAULT_KIND_PRIORITY.index(self.kind))

    def __str__(self) -> str:
        return f"{self.source} -> {self.target} ({self.kind})"


class DependencyGraph:
    """Minimal directed multigraph with outgoing/incoming edge indexes.

    Both indexes are maintained by :meth:`add_edge` only, so they cannot
    drift apart. Node iteration follows insertion order.
    """

    def __init__(self) -> None:
        self._outgoing: dict[str, dict[EdgeKey, Edge]] = {}
        self._incoming: dict[str, dict[EdgeKey, Edge]] = {}
        self._edges: dict[EdgeKey, Edge] = {}

    @classmethod
    def from_edges(cls, edges: Iterable[Edge], *, nodes: Iterable[str] = ()) -> DependencyGraph:
        """Build a graph from *edges*, adding every endpoint as a node."""
        graph = cls()
        for node in nodes:
            graph.add_node(node)
        pending = list(edges)
        for edge in pending:
            graph.add_node(edge.source)
            graph.add_node(edge.target)
        for edge in pending:
            graph.add_edge(edge)
        return graph

    # ------------------------------------------------------------------
    # Mutation (construction only)
    # ------------------------------------------------------------------

    def add_node(self, node: str) -> None:
        if node not in self._outgoing:
            self._outgoing[node] = {}
            self._incoming[node] = {}

    def add_edge(self, edge: Edge) -> None:
        """Add *edge*; re-adding an existing ``(source, target, kind)`` is a no-op.

        Raises:
            UnknownNodeError: If either endpoint was never added.
        """
        for endpoint in (edge.source, edge.target):
            if endpoint not in self._outgoing:
                raise UnknownNodeError(endpoint, source=edge.source, target=edge.target)
        if edge.key in self._edges:
            return
        self._edges[edge.key] = edge
        self._outgoing[edge.source][edge.key] = edge
        self._incoming[edge.target][edge.key] = edge

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def nodes(self) -> frozenset[str]:
        return frozenset(self._outgoing)

    def outgoing(self, node: str) -> frozenset[Edge]:
        return frozenset(self._outgoing.get(node, {}).values())

    def incoming(self, node: str) -> frozenset[Edge]:
        return frozenset(self._incoming.get(node, {}).values())

    def edges(self) -> list[Edge]:
        """All edges in insertion order."""
        return list(self._edges.values())

    def edges_between(self, source: str, target: str) -> list[Edge]:
        """Parallel edges ``source -> target``, easiest kind to eliminate first."""
        found = [e for e in self._outgoing.get(source, {}).values() if e.target == target]
        return sorted(found, key=Edge.sort_key)

    def has_self_loop(self, node: str) -> bool:
        return any(e.is_self_loop for e in self._outgoing.get(node, {}).values())

    def get_edge(self, source: str, target: str, kind: InjectionKind) -> Edge | None:
        return self._edges.get((source, target, kind))

    def to_networkx(self, nodes: Iterable[str] | None = None) -> nx.DiGraph[str]:
        """Collapse parallel edges into a simple NetworkX DiGraph.

        Restricted to *nodes* when given. Each arc keeps the list of kinds
        that connect the pair under the ``kinds`` attribute.
        """
        keep = set(self._outgoing) if nodes is None else set(nodes)
        g: nx.DiGraph[str] = nx.DiGraph()
        for node in self._outgoing:
            if node in keep:
                g.add_node(node)
        for edge in self._edges.values():
            if edge.source in keep and edge.target in keep:
                if g.has_edge(edge.source, edge.target):
                    g[edge.source][edge.target]["kinds"].append(edge.kind)
                else:
                    g.add_edge(edge.source, edge.target, kinds=[edge.kind])
        return g

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __contains__(self, node: object) -> bool:
        return node in self._outgoing

    def __iter__(self) -> Iterator[str]:
        return iter(self._outgoing)

    def __len__(self) -> int:
        return len(self._outgoing)

    def __repr__(self) -> str:
        return f"DependencyGraph(nodes={len(self._outgoing)}, edges={len(self._edges)})"
