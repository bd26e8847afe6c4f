"""Tests for create/search/list request parsing."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from obsvault.domain.errors import ItemValidationError
from obsvault.domain.requests import (
    CreateAreaRequest,
    CreateTaskRequest,
    ListItemsRequest,
    SearchRequest,
    parse_create_request,
)


class TestParseCreateRequest:
    def test_dispatches_on_type(self) -> None:
        req = parse_create_request({"type": "Area", "title": "Health", "purpose": "Stay fit"})
        assert isinstance(req, CreateAreaRequest)
        assert req.purpose == "Stay fit"

    def test_accepts_camel_case(self) -> None:
        req = parse_create_request(
            {"type": "Task", "title": "T", "dueDate": "2025-09-01", "parentProjects": ["P"]}
        )
        assert isinstance(req, CreateTaskRequest)
        assert req.due_date == "2025-09-01"
        assert req.parent_projects == ["P"]

    def test_passes_models_through(self) -> None:
        req = CreateTaskRequest(title="T")
        assert parse_create_request(req) is req

    def test_unknown_type(self) -> None:
        with pytest.raises(ItemValidationError) as exc_info:
            parse_create_request({"type": "Note", "title": "N"})
        assert exc_info.value.errors[0].field == "type"

    def test_missing_title(self) -> None:
        with pytest.raises(ItemValidationError) as exc_info:
            parse_create_request({"type": "Task"})
        assert any(e.field == "title" for e in exc_info.value.errors)

    def test_unknown_field(self) -> None:
        with pytest.raises(ItemValidationError):
            parse_create_request({"type": "Task", "title": "T", "color": "red"})


class TestQueryRequests:
    def test_search_defaults(self) -> None:
        req = SearchRequest()
        assert req.query == ""
        assert req.limit is None

    def test_search_limit_positive(self) -> None:
        with pytest.raises(ValidationError):
            SearchRequest(limit=0)

    def test_list_aliases(self) -> None:
        req = ListItemsRequest.model_validate({"sortBy": "dueDate", "sortOrder": "desc"})
        assert req.sort_by == "dueDate"
        assert req.sort_order == "desc"

    def test_list_rejects_unknown_sort(self) -> None:
        with pytest.raises(ValidationError):
            ListItemsRequest.model_validate({"sortBy": "priority"})
