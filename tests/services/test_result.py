"""Tests for ServiceResult, ServiceError and payload contracts."""

from __future__ import annotations

import pydantic
import pytest

from depcycle.domain.types import Outcome, StrategyKind
from depcycle.services.contracts import DetectResultData, StrategyResult, dump_validated
from depcycle.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_defaults(self) -> None:
        result = ServiceResult(ok=True, op="detect")
        assert result.data == {}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_failure_shortcut(self) -> None:
        result = ServiceResult.failure("plan", "UNKNOWN_NODE", "Unknown node 'X'", node="X")
        assert result.ok is False
        assert result.error == ServiceError(code="UNKNOWN_NODE", message="Unknown node 'X'", detail={"node": "X"})

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="detect")
        with pytest.raises(pydantic.ValidationError):
            result.ok = False  # type: ignore[misc]

    def test_json_round_trip(self) -> None:
        result = ServiceResult(ok=True, op="detect", data={"count": 1}, warnings=["w"])
        assert ServiceResult.model_validate_json(result.model_dump_json()) == result


class TestStrategyResult:
    def test_constructors(self) -> None:
        applied = StrategyResult.applied(StrategyKind.DEFER, {"deferred": "b"})
        skipped = StrategyResult.skipped(StrategyKind.CONVERT, "not a constructor")
        failed = StrategyResult.failed(StrategyKind.EXTRACT_INTERFACE, "no operations")
        assert (applied.outcome, skipped.outcome, failed.outcome) == (
            Outcome.APPLIED,
            Outcome.SKIPPED,
            Outcome.FAILED,
        )
        assert applied.ok and not skipped.ok and not failed.ok

    def test_effect_ignored_by_equality(self) -> None:
        a = StrategyResult.applied(StrategyKind.DEFER, {"deferred": "b"})
        b = StrategyResult.applied(StrategyKind.DEFER, {"deferred": "c"})
        assert a == b

    def test_to_dict(self) -> None:
        result = StrategyResult.skipped(StrategyKind.DEFER, "eager")
        assert result.to_dict() == {"outcome": "skipped", "strategy": "defer", "reason": "eager", "effect": {}}


class TestDumpValidated:
    def test_valid_payload(self) -> None:
        data = {"nodes": 0, "edges": 0, "components": [], "count": 0, "cycles": [], "truncated": False}
        assert dump_validated(DetectResultData, data) == data

    def test_missing_key_fails_fast(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            dump_validated(DetectResultData, {"nodes": 0})
