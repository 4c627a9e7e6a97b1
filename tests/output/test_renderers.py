"""Tests for operation-specific Rich renderers."""

from __future__ import annotations

from depcycle.output.renderers import render_quiet, render_result
from depcycle.services.resolve import ResolveService
from depcycle.services.result import ServiceError, ServiceResult
from depcycle.services.telemetry import enable_telemetry
from tests.conftest import make_workspace, scenario_a, scenario_b, scenario_d


class TestErrorRenderer:
    def test_basic_error(self) -> None:
        result = ServiceResult.failure("detect", "UNKNOWN_NODE", "Unknown node 'X'", node="X")
        output = render_result(result)
        assert "ERROR" in output
        assert "detect" in output
        assert "Unknown node 'X'" in output
        assert "node: X" not in output

    def test_verbose_shows_detail(self) -> None:
        result = ServiceResult.failure("detect", "UNKNOWN_NODE", "Unknown node 'X'", node="X")
        output = render_result(result, verbose=True)
        assert "detail" in output
        assert "node: X" in output

    def test_no_error_object(self) -> None:
        assert "Unknown error" in render_result(ServiceResult(ok=False, op="plan"))

    def test_error_payload(self) -> None:
        result = ServiceResult(ok=False, op="plan", error=ServiceError(code="X", message="boom"))
        assert "boom" in render_quiet(result)


class TestDetectRenderer:
    def test_lists_cycles(self) -> None:
        output = render_result(ResolveService(make_workspace(scenario_b())).detect())
        assert "OK" in output
        assert "A → B → C → A" in output
        assert "constructor" in output
        assert "1 cycle(s)" in output

    def test_no_cycles(self) -> None:
        result = ResolveService(make_workspace({"components": [{"name": "A"}]})).detect()
        assert "No dependency cycles found." in render_result(result)

    def test_quiet_prints_cycles(self) -> None:
        result = ResolveService(make_workspace(scenario_b())).detect()
        assert render_quiet(result) == "A → B → C → A"


class TestPlanRenderer:
    def test_recommendations(self) -> None:
        output = render_result(ResolveService(make_workspace(scenario_a())).plan())
        assert "selected edges: 1" in output
        assert "Mark field 'b' as lazily resolved" in output

    def test_summary_lines(self) -> None:
        lines = render_result(ResolveService(make_workspace(scenario_a())).plan()).splitlines()
        assert lines[:3] == ["OK  plan", "  cycles: 1", "  selected edges: 1"]

    def test_quiet_prints_edges(self) -> None:
        result = ResolveService(make_workspace(scenario_a())).plan()
        assert render_quiet(result) == "A -> B [field]"


class TestResolveRenderer:
    def test_report(self) -> None:
        output = render_result(ResolveService(make_workspace(scenario_d())).resolve())
        assert "extract_mediator" in output
        assert "applied" in output
        assert "modified: A, ABCOperations, B, C" in output
        assert "Verified: no dependency cycles remain." in output

    def test_verbose_lists_skipped_attempts(self) -> None:
        output = render_result(ResolveService(make_workspace(scenario_d())).resolve(), verbose=True)
        assert "extract_interface" in output
        assert "skipped" in output

    def test_unresolved_cycles(self) -> None:
        output = render_result(ResolveService(make_workspace(scenario_b())).resolve())
        assert "Unresolved cycles" in output

    def test_dry_run_banner(self) -> None:
        output = render_result(ResolveService(make_workspace(scenario_a())).resolve(dry_run=True))
        assert "dry run" in output

    def test_quiet_prints_modified(self) -> None:
        result = ResolveService(make_workspace(scenario_d())).resolve()
        assert render_quiet(result).splitlines() == ["A", "ABCOperations", "B", "C"]


class TestTelemetryRendering:
    def test_span_tree_in_verbose(self) -> None:
        enable_telemetry()
        result = ResolveService(make_workspace(scenario_a())).detect()
        output = render_result(result, verbose=True)
        assert "meta:" in output
        assert "ResolveService.detect" in output
        assert "cycles_enumerated" in output
        assert "cycles=1" in output
