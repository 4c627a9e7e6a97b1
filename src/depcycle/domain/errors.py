"""Exception taxonomy.

Only construction-time problems are raised. Truncation, strategy failures
and unresolved cycles are accumulated in the resolution report instead.
"""

from __future__ import annotations


class DepcycleError(Exception):
    """Base class for all depcycle errors."""


class UnknownNodeError(DepcycleError):
    """Raised when an edge references an endpoint that was never added."""

    def __init__(self, node: str, *, source: str, target: str) -> None:
        self.node = node
        self.source = source
        self.target = target
        super().__init__(f"Unknown node '{node}' in edge {source} -> {target}")


class ManifestError(DepcycleError):
    """Raised when a wiring manifest cannot be read or violates its preconditions."""
