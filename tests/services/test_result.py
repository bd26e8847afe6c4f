"""Tests for ServiceResult and ServiceError."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from obsvault.domain.errors import (
    FieldError,
    IndexNotReadyError,
    ItemNotFoundError,
    ItemValidationError,
    ScanCancelledError,
    VaultIOError,
)
from obsvault.services.result import ServiceError, ServiceResult


class TestServiceError:
    @pytest.mark.parametrize(
        ("exc", "code"),
        [
            (ItemNotFoundError("x"), "NOT_FOUND"),
            (VaultIOError("disk"), "IO_ERROR"),
            (ScanCancelledError("stop"), "SCAN_CANCELLED"),
            (IndexNotReadyError(), "INDEX_NOT_READY"),
        ],
    )
    def test_codes(self, exc: Exception, code: str) -> None:
        err = ServiceError.from_exception(exc)  # type: ignore[arg-type]
        assert err.code == code
        assert err.detail == {}

    def test_validation_detail(self) -> None:
        exc = ItemValidationError([FieldError("title", "Title cannot be empty"), FieldError("area", "x")])
        err = ServiceError.from_exception(exc)
        assert err.code == "VALIDATION_FAILED"
        assert err.detail["errors"] == [
            {"field": "title", "message": "Title cannot be empty"},
            {"field": "area", "message": "x"},
        ]
        assert "title: Title cannot be empty" in err.message


class TestServiceResult:
    def test_failure(self) -> None:
        result = ServiceResult.failure("get_item", ItemNotFoundError("abc"), id="abc")
        assert not result.ok
        assert result.data == {"id": "abc"}
        assert result.error is not None
        assert result.error.message == "Item not found: abc"

    def test_defaults(self) -> None:
        result = ServiceResult(ok=True, op="scan_vault")
        assert result.data == {}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="x")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]
