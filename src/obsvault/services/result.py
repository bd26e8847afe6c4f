"""ServiceResult and ServiceError: the store's return contract.

INVARIANT: Every VaultStore operation except ``search_items`` returns a
ServiceResult. The CLI and the MCP tools consume this type; callers tell
failure kinds apart by ``error.code``, never by message text.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from obsvault.domain.errors import ItemValidationError, VaultError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: VaultError) -> ServiceError:
        """Map a vault error onto its code, keeping per-field detail."""
        detail: dict[str, Any] = {}
        if isinstance(exc, ItemValidationError):
            detail["errors"] = [{"field": e.field, "message": e.message} for e in exc.errors]
        return cls(code=exc.code, message=str(exc), detail=detail)


class ServiceResult(BaseModel):
    """Universal return type for store operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"create_item"``).
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
    def failure(cls, op: str, exc: VaultError, **data: Any) -> ServiceResult:
        return cls(ok=False, op=op, data=data, error=ServiceError.from_exception(exc))
