"""ServiceResult and ServiceError — the contract between services and adapters.

INVARIANT: All service-layer operations return ServiceResult. Only
construction-time failures produce ``ok=False``; everything the pipeline
can recover from is reported through ``data`` and ``warnings``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Return type for every service operation.

    Attributes:
        ok: Whether the operation could run at all.
        op: Operation name (``"detect"``, ``"plan"``, ``"resolve"``).
        data: Operation-specific payload.
        warnings: Non-fatal findings (truncation, failed strategies, leftovers).
        error: Structured error when ``ok`` is False.
        meta: Optional metadata such as telemetry spans.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, code: str, message: str, **detail: Any) -> ServiceResult:
        """Shortcut for an ``ok=False`` result."""
        return cls(ok=False, op=op, error=ServiceError(code=code, message=message, detail=detail))
