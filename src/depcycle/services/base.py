"""BaseService — foundation for depcycle services.

Every service receives a :class:`Workspace` at construction time. The
workspace owns the component model, the mutation sink, and the lazily
rebuilt dependency graph.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from depcycle.infrastructure.workspace import Workspace


class BaseService:
    """Base for service-layer classes.

    Usage::

        class ResolveService(BaseService):
            def detect(self) -> ServiceResult:
                graph = self._workspace.graph.graph
                ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace
