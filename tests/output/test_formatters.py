"""Tests for the format_result dispatcher and OutputSettings."""

from __future__ import annotations

import json

import pytest

from obsvault.domain.items import Task
from obsvault.output.formatters import OutputSettings, format_result
from obsvault.services.result import ServiceError, ServiceResult

_STAMP = "2025-08-20T10:00:00.000Z"


def _task() -> Task:
    return Task(
        id="task-write-docs-abc",
        title="Write docs",
        status="To Do",
        due_date="2025-09-01",
        parent_projects=["Docs"],
        created_at=_STAMP,
        updated_at=_STAMP,
    )


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert s.json_output is False
        assert s.verbose is False

    def test_frozen(self) -> None:
        s = OutputSettings(json_output=True)
        with pytest.raises(AttributeError):
            s.json_output = False  # type: ignore[misc]


class TestFormatResultJSON:
    def test_items_use_camel_case(self) -> None:
        result = ServiceResult(ok=True, op="get_item", data={"item": _task()})
        data = json.loads(format_result(result, settings=OutputSettings(json_output=True)))
        assert data["ok"] is True
        assert data["op"] == "get_item"
        item = data["data"]["item"]
        assert item["dueDate"] == "2025-09-01"
        assert item["parentProjects"] == ["Docs"]
        assert item["createdAt"] == _STAMP
        assert "due_date" not in item

    def test_error(self) -> None:
        result = ServiceResult(
            ok=False, op="get_item", error=ServiceError(code="NOT_FOUND", message="Item not found: x")
        )
        data = json.loads(format_result(result, settings=OutputSettings(json_output=True)))
        assert data["ok"] is False
        assert data["error"]["code"] == "NOT_FOUND"


class TestFormatResultRich:
    def test_default_is_rich(self) -> None:
        result = ServiceResult(ok=True, op="delete_item", data={"id": "x", "path": "/v/x.md"})
        output = format_result(result)
        assert not output.startswith("{")
        assert "OK" in output
        assert "delete_item" in output
