"""Edge selector — greedy feedback edge set over enumerated cycles.

Minimum hitting set is NP-hard; the greedy rule below picks, among cycles
not yet hit, the edge appearing in the most of them. Ties prefer edges
whose InjectionKind is easiest to eliminate (configurable priority), then
the lexicographically smallest ``(source, target)``. Whatever the quality
of the heuristic, the result always hits every cycle it was given.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence

from depcycle.domain.cycles import Cycle
from depcycle.domain.graph import DependencyGraph, Edge
from depcycle.domain.types import DEFAULT_KIND_PRIORITY, InjectionKind, normalize_priority

logger = logging.getLogger(__name__)


def select_edges(
    cycles: Sequence[Cycle],
    *,
    priority: Sequence[InjectionKind] = DEFAULT_KIND_PRIORITY,
) -> list[Edge]:
    """Pick edges so that every cycle in *cycles* contains at least one of them.

    Returns the edges in the order they were picked.
    """
    rank = {kind: i for i, kind in enumerate(normalize_priority(tuple(priority)))}

    occurrences: dict[Edge, set[int]] = defaultdict(set)
    for index, cycle in enumerate(cycles):
        for edge in cycle.edges:
            occurrences[edge].add(index)

    unhit: set[int] = set(range(len(cycles)))
    selected: list[Edge] = []

    while unhit:
        best: Edge | None = None
        best_key: tuple[int, int, str, str, str] | None = None
        for edge, indexes in occurrences.items():
            hits = len(indexes & unhit)
            if hits == 0:
                continue
            key = (-hits, rank[edge.kind], edge.source, edge.target, edge.kind.value)
            if best_key is None or key < best_key:
                best, best_key = edge, key
        if best is None:
            # Only reachable for a cycle with no edges, which Cycle forbids.
            break
        selected.append(best)
        unhit -= occurrences[best]
        logger.debug("Selected %s (hits %d cycle(s))", best, -best_key[0] if best_key else 0)

    return selected


def reverse_edges(selected: Sequence[Edge], graph: DependencyGraph) -> list[Edge]:
    """Edges ``v -> u`` for every selected ``u -> v`` that are not selected already.

    Used to fix both sides of a bidirectional dependency.
    """
    chosen = set(selected)
    extra: list[Edge] = []
    for edge in selected:
        for back in graph.edges_between(edge.target, edge.source):
            if back not in chosen and back not in extra:
                extra.append(back)
    return extra


def recommend_fix(edge: Edge) -> str:
    """Human recommendation for breaking *edge*, by injection kind."""
    name = f" '{edge.origin}'" if isinstance(edge.origin, str) and edge.origin else ""
    match edge.kind:
        case InjectionKind.FIELD:
            return f"Mark field{name} as lazily resolved"
        case InjectionKind.SETTER:
            return f"Mark setter parameter{name} as lazily resolved"
        case InjectionKind.CONSTRUCTOR:
            return "Convert to setter injection and defer it, or extract an interface"
        case InjectionKind.FACTORY_METHOD:
            return "Extract the coupled operations into a mediator, or redesign"
