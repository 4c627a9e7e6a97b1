"""Workspace — the single collaborator bundle injected into every service.

Owns the wiring manifest (component model), the sink that mutates it,
and the graph engine that rebuilds the dependency graph on demand.
Nothing here is global: each CLI invocation or test builds its own.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from depcycle.infrastructure.graph.engine import GraphEngine
from depcycle.infrastructure.manifest import ManifestSink, WiringManifest

if TYPE_CHECKING:
    from depcycle.config.settings import DepcycleSettings

logger = logging.getLogger(__name__)


class Workspace:
    """Settings plus the component model, mutation sink, and graph engine."""

    def __init__(
        self,
        settings: DepcycleSettings,
        manifest: WiringManifest,
        *,
        path: Path | None = None,
    ) -> None:
        self.settings = settings
        self.manifest = manifest
        self.path = path
        self.sink = ManifestSink(manifest)
        self.graph = GraphEngine(manifest)

    @classmethod
    def open(cls, settings: DepcycleSettings, path: Path) -> Workspace:
        """Load the manifest at *path*.

        Raises:
            ManifestError: If the file is missing, unparsable, or invalid.
        """
        manifest = WiringManifest.load(path)
        logger.debug("Opened manifest %s (%d components)", path, len(manifest.components))
        return cls(settings, manifest, path=path)

    def save(self, path: Path | None = None) -> Path:
        """Write the (possibly mutated) manifest to *path* or back to its origin."""
        destination = path or self.path
        if destination is None:
            msg = "No destination for an in-memory manifest"
            raise ValueError(msg)
        self.manifest.save(destination)
        logger.debug("Saved manifest to %s", destination)
        return destination
