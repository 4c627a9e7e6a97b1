"""Strategy outcomes and typed payload contracts.

The payload models validate ``ServiceResult.data`` shapes before they
leave the service layer, so key regressions fail fast in tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from depcycle.domain.types import Outcome, StrategyKind


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Strategy outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StrategyResult:
    """Tagged outcome of one strategy attempt on one edge."""

    outcome: Outcome
    strategy: StrategyKind
    reason: str = ""
    effect: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def applied(cls, strategy: StrategyKind, effect: dict[str, Any]) -> StrategyResult:
        return cls(Outcome.APPLIED, strategy, effect=effect)

    @classmethod
    def skipped(cls, strategy: StrategyKind, reason: str) -> StrategyResult:
        return cls(Outcome.SKIPPED, strategy, reason=reason)

    @classmethod
    def failed(cls, strategy: StrategyKind, reason: str) -> StrategyResult:
        return cls(Outcome.FAILED, strategy, reason=reason)

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.APPLIED

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "strategy": self.strategy.value,
            "reason": self.reason,
            "effect": self.effect,
        }


# ---------------------------------------------------------------------------
# Payload contracts
# ---------------------------------------------------------------------------


class EdgePayload(BaseModel):
    source: str
    target: str
    kind: str
    origin: str | None = None


class CyclePayload(BaseModel):
    nodes: list[str]
    kinds: list[str]
    display: str


class SelectedEdgePayload(EdgePayload):
    recommendation: str


class AttemptPayload(BaseModel):
    outcome: str
    strategy: str
    reason: str = ""
    effect: dict[str, Any] = Field(default_factory=dict)


class EdgeResolutionPayload(BaseModel):
    edge: EdgePayload
    result: AttemptPayload
    attempts: list[AttemptPayload]
    pass_number: int


class IssuePayload(BaseModel):
    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class DetectResultData(BaseModel):
    """Payload contract for ``ResolveService.detect``."""

    nodes: int
    edges: int
    components: list[list[str]]
    count: int
    cycles: list[CyclePayload]
    truncated: bool


class PlanResultData(DetectResultData):
    """Payload contract for ``ResolveService.plan``."""

    selected: list[SelectedEdgePayload]


class ResolveResultData(BaseModel):
    """Payload contract for ``ResolveService.resolve`` (the result report)."""

    stage: str
    dry_run: bool
    strategy: str
    passes: int
    truncated: bool
    selected: list[SelectedEdgePayload]
    resolutions: list[EdgeResolutionPayload]
    applied: int
    skipped: int
    failed: int
    modified: list[str]
    verified: bool
    remaining: list[CyclePayload]
    issues: list[IssuePayload]
