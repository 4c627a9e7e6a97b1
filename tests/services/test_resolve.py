"""Tests for ResolveService — detect, plan and the full resolve pipeline."""

from __future__ import annotations

from typing import Any

import pytest

from depcycle.services.resolve import ResolveService
from depcycle.services.telemetry import enable_telemetry
from tests.conftest import make_workspace, scenario_a, scenario_b, scenario_c, scenario_d


def _complete_manifest(size: int) -> dict[str, Any]:
    names = [f"n{i}" for i in range(size)]
    return {
        "components": [
            {"name": a, "dependencies": [{"target": b, "kind": "field"} for b in names if b != a]}
            for a in names
        ]
    }


def _ghost_manifest() -> dict[str, Any]:
    return {"components": [{"name": "A", "dependencies": [{"target": "Ghost"}]}]}


def _edge_keys(edges: list[dict[str, Any]]) -> list[tuple[str, str, str]]:
    return [(e["source"], e["target"], e["kind"]) for e in edges]


class TestDetect:
    def test_scenario_a(self) -> None:
        result = ResolveService(make_workspace(scenario_a())).detect()
        assert result.ok
        assert result.op == "detect"
        assert result.data["nodes"] == 2
        assert result.data["edges"] == 2
        assert result.data["components"] == [["A", "B"]]
        assert result.data["count"] == 1
        assert result.data["cycles"][0]["nodes"] == ["A", "B"]
        assert result.data["cycles"][0]["display"] == "A → B → A"
        assert result.data["truncated"] is False
        assert result.warnings == []

    def test_scenario_b_single_cycle(self) -> None:
        result = ResolveService(make_workspace(scenario_b())).detect()
        assert [c["nodes"] for c in result.data["cycles"]] == [["A", "B", "C"]]

    def test_scenario_c_two_cycles(self) -> None:
        result = ResolveService(make_workspace(scenario_c())).detect()
        cycles = result.data["cycles"]
        assert result.data["count"] == 2
        assert {tuple(c["nodes"]) for c in cycles} == {("A", "B")}
        assert sorted(c["kinds"][0] for c in cycles) == ["factory_method", "field"]

    def test_truncation_is_flagged(self) -> None:
        ws = make_workspace(_complete_manifest(4), analysis={"max_cycles": 3})
        result = ResolveService(ws).detect()
        assert result.ok
        assert result.data["count"] == 3
        assert result.data["truncated"] is True
        assert any("stopped at 3" in w for w in result.warnings)

    def test_unknown_node(self) -> None:
        result = ResolveService(make_workspace(_ghost_manifest())).detect()
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "UNKNOWN_NODE"
        assert result.error.detail == {"node": "Ghost", "source": "A", "target": "Ghost"}


class TestPlan:
    def test_scenario_a_selects_one_edge(self) -> None:
        result = ResolveService(make_workspace(scenario_a())).plan()
        assert result.ok
        assert result.op == "plan"
        assert _edge_keys(result.data["selected"]) == [("A", "B", "field")]
        assert result.data["selected"][0]["recommendation"] == "Mark field 'b' as lazily resolved"

    def test_scenario_b_lexicographic_choice(self) -> None:
        result = ResolveService(make_workspace(scenario_b())).plan()
        assert _edge_keys(result.data["selected"]) == [("A", "B", "constructor")]

    def test_scenario_c_hitting_set(self) -> None:
        data = ResolveService(make_workspace(scenario_c())).plan().data
        selected = set(_edge_keys(data["selected"]))
        for cycle in data["cycles"]:
            nodes = cycle["nodes"]
            edges = {
                (nodes[i], nodes[(i + 1) % len(nodes)], kind) for i, kind in enumerate(cycle["kinds"])
            }
            assert selected & edges

    def test_deterministic(self) -> None:
        first = ResolveService(make_workspace(_complete_manifest(5))).plan()
        second = ResolveService(make_workspace(_complete_manifest(5))).plan()
        assert first.data == second.data

    def test_kind_priority_from_settings(self) -> None:
        data = {
            "components": [
                {"name": "A", "dependencies": [{"target": "B", "kind": "field"}]},
                {"name": "B", "dependencies": [{"target": "A", "kind": "constructor"}]},
            ]
        }
        ws = make_workspace(data, analysis={"kind_priority": ["constructor"]})
        result = ResolveService(ws).plan()
        assert _edge_keys(result.data["selected"]) == [("B", "A", "constructor")]

    def test_unknown_node(self) -> None:
        result = ResolveService(make_workspace(_ghost_manifest())).plan()
        assert not result.ok
        assert result.error.code == "UNKNOWN_NODE"


class TestResolveScenarios:
    def test_scenario_a_deferral(self) -> None:
        ws = make_workspace(scenario_a())
        result = ResolveService(ws).resolve()
        data = result.data

        assert result.ok
        assert result.op == "resolve"
        assert data["stage"] == "done"
        assert len(data["selected"]) == 1
        resolution = data["resolutions"][0]
        assert resolution["result"]["strategy"] == "defer"
        assert resolution["result"]["outcome"] == "applied"
        assert data["applied"] == 1
        assert data["modified"] == ["A"]
        assert data["verified"] is True
        assert data["remaining"] == []
        assert data["issues"] == []
        assert result.warnings == []
        assert ws.manifest.get("A").dependencies[0].lazy is True

    def test_scenario_b_conversion(self) -> None:
        ws = make_workspace(scenario_b())
        result = ResolveService(ws).resolve()
        data = result.data

        resolution = data["resolutions"][0]
        assert _edge_keys([resolution["edge"]]) == [("A", "B", "constructor")]
        assert [a["outcome"] for a in resolution["attempts"]] == ["skipped", "applied"]
        assert resolution["result"]["strategy"] == "convert"
        assert ws.manifest.get("A").dependencies[0].kind == "setter"
        # One pass converts; the setter edge still closes the cycle.
        assert [c["kinds"] for c in data["remaining"]] == [["setter", "constructor", "constructor"]]
        assert [i["code"] for i in data["issues"]] == ["UNRESOLVED_CYCLE"]
        assert result.warnings == ["Cycle still closes: A → B → C → A"]

    def test_scenario_b_second_pass_defers(self) -> None:
        result = ResolveService(make_workspace(scenario_b())).resolve(max_passes=2)
        data = result.data
        assert data["passes"] == 2
        assert [(r["pass_number"], r["result"]["strategy"]) for r in data["resolutions"]] == [
            (1, "convert"),
            (2, "defer"),
        ]
        assert data["remaining"] == []
        assert data["issues"] == []

    def test_passes_capped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("depcycle.services.resolve.MAX_PASSES", 1)
        data = ResolveService(make_workspace(scenario_b())).resolve(max_passes=2).data
        assert data["passes"] == 1
        assert len(data["remaining"]) == 1

    def test_scenario_c(self) -> None:
        ws = make_workspace(scenario_c())
        data = ResolveService(ws).resolve().data
        assert data["failed"] == 0
        assert data["remaining"] == []
        assert data["verified"] is True

    def test_scenario_d_mediator(self) -> None:
        ws = make_workspace(scenario_d())
        data = ResolveService(ws).resolve().data

        attempts = data["resolutions"][0]["attempts"]
        assert [(a["strategy"], a["outcome"]) for a in attempts] == [
            ("defer", "skipped"),
            ("convert", "skipped"),
            ("extract_interface", "skipped"),
            ("extract_mediator", "applied"),
        ]
        assert data["modified"] == ["A", "ABCOperations", "B", "C"]
        assert data["verified"] is True
        assert data["remaining"] == []
        assert ws.manifest.get("ABCOperations") is not None


class TestResolveOptions:
    def test_dry_run_mutates_nothing(self) -> None:
        ws = make_workspace(scenario_a())
        before = ws.manifest.dump()
        data = ResolveService(ws).resolve(dry_run=True).data

        assert ws.manifest.dump() == before
        assert data["dry_run"] is True
        assert data["applied"] == 1
        assert data["modified"] == []
        assert data["verified"] is False
        assert data["resolutions"][0]["result"]["effect"]["dry_run"] is True

    def test_dry_run_reports_same_outcomes(self) -> None:
        dry = ResolveService(make_workspace(scenario_d())).resolve(dry_run=True).data
        real = ResolveService(make_workspace(scenario_d())).resolve().data
        assert [r["result"]["outcome"] for r in dry["resolutions"]] == [
            r["result"]["outcome"] for r in real["resolutions"]
        ]

    def test_no_verify(self) -> None:
        data = ResolveService(make_workspace(scenario_b())).resolve(verify=False).data
        assert data["verified"] is False
        assert data["remaining"] == []
        assert data["issues"] == []

    def test_forced_strategy(self) -> None:
        data = ResolveService(make_workspace(scenario_b())).resolve(strategy="defer").data
        assert data["strategy"] == "defer"
        assert data["skipped"] == 1
        assert data["applied"] == 0
        assert len(data["remaining"]) == 1

    def test_invalid_strategy(self) -> None:
        result = ResolveService(make_workspace(scenario_a())).resolve(strategy="magic")
        assert not result.ok
        assert result.error.code == "INVALID_STRATEGY"

    def test_settings_supply_defaults(self) -> None:
        ws = make_workspace(scenario_b(), resolve={"max_passes": 2})
        data = ResolveService(ws).resolve().data
        assert data["passes"] == 2
        assert data["remaining"] == []

    def test_reverse_edges(self) -> None:
        ws = make_workspace(scenario_a(), analysis={"include_reverse_edges": True})
        data = ResolveService(ws).resolve().data
        assert _edge_keys(data["selected"]) == [("A", "B", "field"), ("B", "A", "field")]
        assert data["applied"] == 2
        assert data["modified"] == ["A", "B"]

    def test_strategy_failure_is_reported(self) -> None:
        manifest = scenario_a()
        for comp in manifest["components"]:
            comp["proxyable"] = False
        result = ResolveService(make_workspace(manifest)).resolve()
        data = result.data

        assert result.ok
        assert data["failed"] == 1
        assert data["resolutions"][0]["result"]["strategy"] == "extract_interface"
        assert [i["code"] for i in data["issues"]] == ["STRATEGY_FAILED", "UNRESOLVED_CYCLE"]
        assert len(result.warnings) == 2

    def test_non_proxyable_target_over_two_passes(self) -> None:
        manifest = scenario_a()
        manifest["components"][1]["proxyable"] = False
        manifest["components"][0]["dependencies"][0]["operations"] = ["ping"]
        ws = make_workspace(manifest)
        data = ResolveService(ws).resolve(max_passes=2).data

        assert [r["result"]["strategy"] for r in data["resolutions"]] == ["extract_interface", "defer"]
        assert data["remaining"] == []
        assert ws.manifest.get("BContract") is not None

    def test_truncation_issue(self) -> None:
        ws = make_workspace(_complete_manifest(4), analysis={"max_cycles": 3})
        data = ResolveService(ws).resolve(dry_run=True).data
        assert data["truncated"] is True
        assert data["issues"][0]["code"] == "ENUMERATION_TRUNCATED"

    def test_acyclic_graph(self) -> None:
        ws = make_workspace({"components": [{"name": "A", "dependencies": [{"target": "B"}]}, {"name": "B"}]})
        data = ResolveService(ws).resolve().data
        assert data["passes"] == 1
        assert data["resolutions"] == []
        assert data["verified"] is True
        assert data["remaining"] == []

    def test_unknown_node(self) -> None:
        result = ResolveService(make_workspace(_ghost_manifest())).resolve()
        assert not result.ok
        assert result.error.code == "UNKNOWN_NODE"

    @pytest.mark.parametrize("factory", [scenario_a, scenario_b, scenario_c, scenario_d])
    def test_deterministic(self, factory: Any) -> None:
        first = ResolveService(make_workspace(factory())).resolve().data
        second = ResolveService(make_workspace(factory())).resolve().data
        assert first == second


class TestTelemetry:
    def test_spans_attached_when_enabled(self) -> None:
        enable_telemetry()
        result = ResolveService(make_workspace(scenario_a())).resolve()
        span = result.meta["telemetry"]
        assert span["name"] == "ResolveService.resolve"
        names = [child["name"] for child in span["children"]]
        assert names[:4] == ["graph_accepted", "scc_computed", "cycles_enumerated", "edges_selected"]
        assert "strategies_dispatched" in names
        assert "verify" in names

    def test_no_meta_when_disabled(self) -> None:
        result = ResolveService(make_workspace(scenario_a())).detect()
        assert result.meta is None
