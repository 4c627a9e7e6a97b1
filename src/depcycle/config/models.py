"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults live here, depcycle.toml only holds
overrides. An empty file (or none at all) is a valid configuration.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from depcycle.domain.types import DEFAULT_KIND_PRIORITY, InjectionKind, normalize_priority

type StrategyChoice = Literal["auto", "defer", "convert", "extract_interface", "extract_mediator"]


class AnalysisConfig(BaseModel):
    """[analysis] section."""

    model_config = {"frozen": True}

    max_cycles: int | None = Field(default=10_000, ge=0)
    kind_priority: tuple[InjectionKind, ...] = DEFAULT_KIND_PRIORITY
    include_reverse_edges: bool = False

    @field_validator("kind_priority", mode="after")
    @classmethod
    def _complete_priority(cls, value: tuple[InjectionKind, ...]) -> tuple[InjectionKind, ...]:
        return normalize_priority(value)


class ResolveConfig(BaseModel):
    """[resolve] section."""

    model_config = {"frozen": True}

    strategy: StrategyChoice = "auto"
    dry_run: bool = False
    verify: bool = True
    max_passes: int = Field(default=1, ge=1, le=10)
