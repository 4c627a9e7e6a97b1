"""Collaborator ports — the only seams between the engine and the outside world.

:class:`ComponentModel` answers questions about components (the provider
side); :class:`MutationSink` accepts structural change requests. Neither
exposes any source-representation type, so the algorithms and strategies
stay free of parsing and file-writing concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from depcycle.domain.types import MutationKind

if TYPE_CHECKING:
    from depcycle.domain.graph import DependencyGraph, Edge


class ComponentModel(Protocol):
    """Read-side collaborator: the component model provider."""

    def build_graph(self) -> DependencyGraph: ...

    def component_exists(self, name: str) -> bool: ...

    def is_deferrable(self, edge: Edge) -> bool:
        """Whether the edge's declared type can be resolved lazily."""
        ...

    def is_abstract(self, edge: Edge) -> bool:
        """Whether the edge already points at an abstraction."""
        ...

    def has_conflicting_mutator(self, edge: Edge) -> bool:
        """Whether the source already has a setter path to the target."""
        ...

    def invoked_operations(self, edge: Edge) -> frozenset[str]:
        """Operations the edge's source invokes on its target."""
        ...

    def operations_using(self, component: str, dependency: str) -> frozenset[str]:
        """Operations of *component* whose bodies touch *dependency*."""
        ...

    def local_calls(self, component: str, operation: str) -> frozenset[str]: ...

    def fields_used(self, component: str, operation: str) -> frozenset[str]: ...


@dataclass(frozen=True)
class MutationRequest:
    """A structural change keyed by a component (and optionally an edge)."""

    kind: MutationKind
    component: str
    edge: Edge | None = None
    detail: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


class MutationSink(Protocol):
    """Write-side collaborator. Returns True when the change was realized."""

    def submit(self, request: MutationRequest) -> bool: ...
