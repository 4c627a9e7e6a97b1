"""Tests for Workspace and the lazily rebuilt graph engine."""

from __future__ import annotations

from pathlib import Path

import pytest

from depcycle.config.settings import DepcycleSettings
from depcycle.domain.errors import ManifestError
from depcycle.infrastructure.graph.engine import GraphEngine
from depcycle.infrastructure.manifest import WiringManifest
from depcycle.infrastructure.workspace import Workspace
from tests.conftest import make_workspace, scenario_a, write_manifest


class TestGraphEngine:
    def test_builds_lazily_and_caches(self) -> None:
        engine = GraphEngine(WiringManifest.from_dict(scenario_a()))
        assert engine.builds == 0
        first = engine.graph
        assert engine.graph is first
        assert engine.builds == 1

    def test_invalidate_rebuilds(self) -> None:
        manifest = WiringManifest.from_dict(scenario_a())
        engine = GraphEngine(manifest)
        assert len(engine.graph.edges()) == 2
        manifest.get("A").dependencies[0].lazy = True
        assert len(engine.graph.edges()) == 2
        engine.invalidate()
        assert len(engine.graph.edges()) == 1
        assert engine.builds == 2


class TestWorkspace:
    def test_open_and_save_in_place(self, tmp_path: Path) -> None:
        path = write_manifest(tmp_path / "wiring.yaml", scenario_a())
        ws = Workspace.open(DepcycleSettings(), path)
        assert ws.path == path
        ws.manifest.get("A").dependencies[0].lazy = True
        assert ws.save() == path
        assert WiringManifest.load(path).get("A").dependencies[0].lazy is True

    def test_save_elsewhere(self, tmp_path: Path) -> None:
        path = write_manifest(tmp_path / "wiring.yaml", scenario_a())
        ws = Workspace.open(DepcycleSettings(), path)
        out = tmp_path / "fixed.yaml"
        assert ws.save(out) == out
        assert out.is_file()

    def test_open_invalid(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError):
            Workspace.open(DepcycleSettings(), tmp_path / "missing.yaml")

    def test_in_memory_save_needs_destination(self) -> None:
        with pytest.raises(ValueError, match="No destination"):
            make_workspace(scenario_a()).save()
