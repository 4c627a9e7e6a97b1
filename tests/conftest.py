"""Shared pytest fixtures and test helpers for depcycle tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from depcycle.config.settings import DepcycleSettings
from depcycle.domain.graph import DependencyGraph, Edge
from depcycle.domain.types import InjectionKind
from depcycle.infrastructure.manifest import WiringManifest
from depcycle.infrastructure.workspace import Workspace
from depcycle.services.telemetry import _current_span, disable_telemetry


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Keep env vars, logging handlers and telemetry state from leaking between tests."""
    monkeypatch.delenv("DEPCYCLE_CONFIG", raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    dc = logging.getLogger("depcycle")
    dc_level = dc.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    dc.setLevel(dc_level)
    disable_telemetry()
    _current_span.set(None)


# ---------------------------------------------------------------------------
# Graph builders
# ---------------------------------------------------------------------------

F = InjectionKind.FIELD
S = InjectionKind.SETTER
C = InjectionKind.CONSTRUCTOR
M = InjectionKind.FACTORY_METHOD


def make_graph(*edges: tuple[str, str, InjectionKind], nodes: tuple[str, ...] = ()) -> DependencyGraph:
    """Graph from ``(source, target, kind)`` triples."""
    return DependencyGraph.from_edges((Edge(s, t, k) for s, t, k in edges), nodes=nodes)


def complete_graph(size: int) -> DependencyGraph:
    """Complete digraph on nodes ``n0..n{size-1}``, all FIELD edges."""
    names = [f"n{i}" for i in range(size)]
    return make_graph(*((a, b, F) for a in names for b in names if a != b))


# ---------------------------------------------------------------------------
# Manifest builders (the §8 scenarios as wiring manifests)
# ---------------------------------------------------------------------------


def scenario_a() -> dict[str, Any]:
    """A <-> B, both FIELD."""
    return {
        "components": [
            {"name": "A", "dependencies": [{"target": "B", "kind": "field", "field": "b"}]},
            {"name": "B", "dependencies": [{"target": "A", "kind": "field", "field": "a"}]},
        ]
    }


def scenario_b() -> dict[str, Any]:
    """A -> B -> C -> A, all CONSTRUCTOR."""
    return {
        "components": [
            {"name": "A", "dependencies": [{"target": "B", "kind": "constructor"}]},
            {"name": "B", "dependencies": [{"target": "C", "kind": "constructor"}]},
            {"name": "C", "dependencies": [{"target": "A", "kind": "constructor"}]},
        ]
    }


def scenario_c() -> dict[str, Any]:
    """A -> B twice (FIELD and FACTORY_METHOD), B -> A FIELD."""
    return {
        "components": [
            {
                "name": "A",
                "dependencies": [
                    {"target": "B", "kind": "field", "field": "b"},
                    {"target": "B", "kind": "factory_method", "field": "bFactory"},
                ],
            },
            {"name": "B", "dependencies": [{"target": "A", "kind": "field", "field": "a"}]},
        ]
    }


def scenario_d() -> dict[str, Any]:
    """A -> B -> C -> A, all FACTORY_METHOD, with coupled operations."""
    return {
        "components": [
            {
                "name": "A",
                "dependencies": [{"target": "B", "kind": "factory_method", "field": "b"}],
                "operations": {
                    "run": {"fields": ["b"], "calls": ["helper"]},
                    "helper": {"fields": ["counter"]},
                    "unrelated": {},
                },
            },
            {
                "name": "B",
                "dependencies": [{"target": "C", "kind": "factory_method", "field": "c"}],
                "operations": {"build": {"fields": ["c"]}},
            },
            {
                "name": "C",
                "dependencies": [{"target": "A", "kind": "factory_method", "field": "a"}],
                "operations": {"make": {"uses": ["A"]}},
            },
        ]
    }


def make_workspace(data: dict[str, Any], **settings: Any) -> Workspace:
    """In-memory workspace over a manifest dict; *settings* override defaults."""
    return Workspace(DepcycleSettings(**settings), WiringManifest.from_dict(data))


def write_manifest(path: Path, data: dict[str, Any]) -> Path:
    """Write *data* as a YAML manifest at *path*."""
    path.write_text(WiringManifest.from_dict(data).dump(), encoding="utf-8")
    return path
