"""Cycle detector — strongly connected component pre-filter.

Cycles never cross SCC boundaries, so the exponential enumerator only
needs to run inside components that actually contain a cycle. NetworkX's
SCC routine is iterative (no recursion limit on deep graphs) and linear.
"""

from __future__ import annotations

import logging

import networkx as nx

from depcycle.domain.graph import DependencyGraph

logger = logging.getLogger(__name__)


def find_cyclic_components(graph: DependencyGraph) -> list[frozenset[str]]:
    """Return the node sets of all SCCs that contain at least one cycle.

    A singleton component is kept only when its node has a self-loop.
    The result is ordered by each component's smallest node id so that
    repeated runs on the same graph produce the same sequence.
    """
    if len(graph) == 0:
        return []

    g = graph.to_networkx()
    cyclic: list[frozenset[str]] = []
    for component in nx.strongly_connected_components(g):
        if len(component) > 1:
            cyclic.append(frozenset(component))
            continue
        (node,) = component
        if graph.has_self_loop(node):
            cyclic.append(frozenset(component))

    cyclic.sort(key=min)
    logger.debug("Found %d cyclic component(s) among %d node(s)", len(cyclic), len(graph))
    return cyclic

