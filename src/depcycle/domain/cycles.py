"""Elementary cycle enumeration (Johnson's algorithm).

Johnson's algorithm lists every simple cycle exactly once. For each start
node *s*, taken in increasing order, it searches the SCC containing *s*
within the nodes not yet used as a start (components are split again
after each start node is removed). A *blocked* set stops the DFS
from re-entering nodes that cannot currently reach *s*; the *blocking*
map records who to unblock once a cycle closes through a node.

The DFS runs on an explicit stack of ``(node, successor-iterator)``
frames, so long cycles in large graphs never hit the recursion limit.

Enumeration happens on node adjacency; each node cycle is then expanded
into one :class:`Cycle` per combination of parallel edges along its hops,
since parallel edges of different kinds close distinct cycles.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import networkx as nx

from depcycle.domain.graph import DependencyGraph, Edge
from depcycle.domain.scc import find_cyclic_components

logger = logging.getLogger(__name__)

_EXHAUSTED = object()


@dataclass(frozen=True)
class Cycle:
    """An elementary cycle ``nodes[0] -> nodes[1] -> ... -> nodes[0]``.

    ``edges[i]`` is the concrete edge closing the hop from ``nodes[i]`` to
    ``nodes[(i + 1) % len(nodes)]``. Instances are rotation-normalized so
    the smallest node comes first; equal cycles compare equal.
    """

    nodes: tuple[str, ...]
    edges: tuple[Edge, ...]

    @classmethod
    def from_path(cls, nodes: Iterable[str], edges: Iterable[Edge]) -> Cycle:
        node_list = list(nodes)
        edge_list = list(edges)
        if not node_list or len(node_list) != len(edge_list):
            msg = "A cycle needs one closing edge per node"
            raise ValueError(msg)
        pivot = node_list.index(min(node_list))
        return cls(
            nodes=tuple(node_list[pivot:] + node_list[:pivot]),
            edges=tuple(edge_list[pivot:] + edge_list[:pivot]),
        )

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, item: object) -> bool:
        return item in self.edges

    def format(self, *, simple_names: bool = True) -> str:
        """Render as ``A → B → C → A``.

        With *simple_names*, dotted identifiers are shortened to the part
        after the last dot.
        """
        names = [_simple(n) if simple_names else n for n in self.nodes]
        return " → ".join([*names, names[0]])

    def to_dict(self) -> dict[str, object]:
        return {
            "nodes": list(self.nodes),
            "kinds": [e.kind.value for e in self.edges],
            "display": self.format(),
        }


def _simple(node: str) -> str:
    return node.rsplit(".", 1)[-1]


@dataclass(frozen=True)
class EnumerationResult:
    """Cycles found plus the truncation flag.

    When *truncated* is set, the cap was reached and the list is partial:
    a hitting set computed from it may miss cycles that were never listed.
    """

    cycles: tuple[Cycle, ...]
    truncated: bool = False
    limit: int | None = None

    def __len__(self) -> int:
        return len(self.cycles)

    def __iter__(self) -> Iterator[Cycle]:
        return iter(self.cycles)


def enumerate_cycles(
    graph: DependencyGraph,
    components: list[frozenset[str]] | None = None,
    *,
    limit: int | None = None,
) -> EnumerationResult:
    """Enumerate all elementary cycles of *graph*.

    Args:
        graph: The dependency graph (read-only).
        components: Cyclic SCCs to search. Computed when omitted.
        limit: Stop after this many cycles and flag the result truncated.
            ``None`` or ``0`` means unlimited.
    """
    if components is None:
        components = find_cyclic_components(graph)
    cap = limit or None

    found: list[Cycle] = []
    for component in components:
        for node_cycle in iter_node_cycles(graph, component):
            for cycle in expand_parallel_edges(graph, node_cycle):
                if cap is not None and len(found) >= cap:
                    logger.warning("Cycle enumeration truncated at %d cycle(s)", cap)
                    return EnumerationResult(cycles=tuple(found), truncated=True, limit=cap)
                found.append(cycle)

    logger.debug("Enumerated %d elementary cycle(s)", len(found))
    return EnumerationResult(cycles=tuple(found), truncated=False, limit=cap)


def iter_node_cycles(graph: DependencyGraph, component: frozenset[str]) -> Iterator[list[str]]:
    """Yield each simple cycle inside *component* as a node list.

    Each list starts at its smallest node. Start nodes are processed in
    increasing order: the pending sub-components sit in a heap keyed by
    their smallest node, and once a start node is exhausted it is removed
    and only its own component is split again, so no cycle is produced
    twice.
    """
    g = graph.to_networkx(component)
    pending: list[tuple[str, frozenset[str]]] = [(min(component), component)]

    while pending:
        start, scc = heapq.heappop(pending)
        if len(scc) == 1 and not g.has_edge(start, start):
            continue

        adjacency = {node: sorted(s for s in g.successors(node) if s in scc) for node in scc}
        yield from _circuits(start, adjacency)

        for sub in _split(g, scc - {start}):
            heapq.heappush(pending, (min(sub), sub))


def _split(g: nx.DiGraph[str], nodes: frozenset[str]) -> Iterator[frozenset[str]]:
    """SCCs of the subgraph induced by *nodes* that can still hold a cycle."""
    for sub in nx.strongly_connected_components(g.subgraph(nodes)):
        if len(sub) > 1:
            yield frozenset(sub)
        else:
            (node,) = sub
            if g.has_edge(node, node):
                yield frozenset(sub)


def _circuits(start: str, adjacency: dict[str, list[str]]) -> Iterator[list[str]]:
    """Johnson's CIRCUIT procedure on an explicit frame stack."""
    path: list[str] = [start]
    blocked: set[str] = {start}
    blocking: dict[str, set[str]] = defaultdict(set)
    # closed[i] is True once a cycle has been found through path[i].
    closed: list[bool] = [False]
    stack: list[tuple[str, Iterator[str]]] = [(start, iter(adjacency[start]))]

    while stack:
        node, successors = stack[-1]
        nxt = next(successors, _EXHAUSTED)

        if nxt is not _EXHAUSTED:
            assert isinstance(nxt, str)
            if nxt == start:
                yield list(path)
                closed[-1] = True
            elif nxt not in blocked:
                path.append(nxt)
                closed.append(False)
                blocked.add(nxt)
                stack.append((nxt, iter(adjacency[nxt])))
            continue

        # All successors of node explored: backtrack.
        stack.pop()
        path.pop()
        found = closed.pop()
        if found:
            _unblock(node, blocked, blocking)
        else:
            for succ in adjacency[node]:
                blocking[succ].add(node)
        if found and closed:
            closed[-1] = True


def _unblock(node: str, blocked: set[str], blocking: dict[str, set[str]]) -> None:
    """Unblock *node* and, transitively, everything waiting on it."""
    pending = [node]
    while pending:
        current = pending.pop()
        if current in blocked:
            blocked.discard(current)
            pending.extend(blocking[current])
            blocking[current].clear()


def expand_parallel_edges(graph: DependencyGraph, node_cycle: list[str]) -> Iterator[Cycle]:
    """Yield one Cycle per choice of parallel edge on every hop of *node_cycle*."""
    hops = [
        graph.edges_between(node, node_cycle[(i + 1) % len(node_cycle)])
        for i, node in enumerate(node_cycle)
    ]
    for combo in itertools.product(*hops):
        yield Cycle.from_path(node_cycle, combo)
