"""ServiceResult and ServiceError — the envelope adapters speak.

Services return typed models and raise :class:`~fwdctl.errors.FwdError`
subclasses.  Adapters (the CLI) fold both channels into a
:class:`ServiceResult` so every command emits one shape.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from fwdctl.errors import FwdError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: FwdError) -> ServiceError:
        return cls(code=exc.code, message=exc.message, detail=exc.detail)


class ServiceResult(BaseModel):
    """Universal return type for adapter-facing operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"create_client"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, counts, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: FwdError) -> ServiceResult:
        return cls(ok=False, op=op, error=ServiceError.from_exception(exc))
