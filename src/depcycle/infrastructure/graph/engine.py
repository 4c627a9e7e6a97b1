"""GraphEngine — lazily built DependencyGraph from a component model.

Built on first access and cached until :meth:`invalidate`. The resolve
pipeline invalidates after applying fixes, so re-verification always runs
on a graph freshly rebuilt by the provider.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from depcycle.domain.graph import DependencyGraph
    from depcycle.domain.ports import ComponentModel


class GraphEngine:
    """Lazy-loading graph cache over a :class:`ComponentModel`."""

    def __init__(self, model: ComponentModel) -> None:
        self._model = model
        self._graph: DependencyGraph | None = None
        self.builds = 0

    @property
    def graph(self) -> DependencyGraph:
        """Return the graph, building it from the model on first access."""
        if self._graph is None:
            self._graph = self._model.build_graph()
            self.builds += 1
        return self._graph

    def invalidate(self) -> None:
        """Drop the cached graph, forcing a rebuild on next access."""
        self._graph = None
