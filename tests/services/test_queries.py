"""Tests for filtering, outstanding-task ordering, sorting, and paging."""

from __future__ import annotations

import pytest

from obsvault.domain.items import BaseItem, Epic, Resource, Task
from obsvault.services.queries import filter_items, outstanding_tasks, paginate, sort_items

_STAMP = "2025-08-20T10:00:00.000Z"


def _task(item_id: str, status: str = "To Do", **fields: object) -> Task:
    return Task(  # type: ignore[arg-type]
        id=item_id,
        title=fields.pop("title", item_id),
        status=status,
        created_at=fields.pop("created_at", _STAMP),
        updated_at=_STAMP,
        **fields,
    )


class TestOutstandingTasks:
    def test_in_progress_first(self) -> None:
        tasks = [_task("a", "To Do"), _task("b", "In Progress")]
        assert [t.id for t in outstanding_tasks(tasks)] == ["b", "a"]

    def test_done_and_completed_excluded(self) -> None:
        tasks = [_task("a", "Done"), _task("b", "Completed"), _task("c", "Blocked")]
        assert [t.id for t in outstanding_tasks(tasks)] == ["c"]

    def test_non_tasks_excluded(self) -> None:
        epic = Epic(id="e", title="E", status="Active", area="Work", created_at=_STAMP, updated_at=_STAMP)
        assert outstanding_tasks([epic]) == []

    def test_status_rank_then_due_date(self) -> None:
        tasks = [
            _task("late", "To Do", due_date="2025-09-01"),
            _task("nodue", "To Do"),
            _task("early", "To Do", due_date="2025-08-20"),
            _task("odd", "Someday", due_date="2025-01-01"),
            _task("blocked", "Blocked"),
            _task("busy", "In Progress", due_date="2026-01-01"),
        ]
        ordered = [t.id for t in outstanding_tasks(tasks)]
        assert ordered == ["busy", "early", "late", "nodue", "blocked", "odd"]

    def test_unparseable_due_date_sorts_as_missing(self) -> None:
        tasks = [_task("junk", due_date="soon"), _task("real", due_date="2025-08-20")]
        assert [t.id for t in outstanding_tasks(tasks)] == ["real", "junk"]


class TestFilterItems:
    @pytest.fixture
    def items(self) -> list[BaseItem]:
        return [
            _task("t1", area="Work", tags=["a"]),
            _task("t2", "Done", area="Home", tags=["b"]),
            Resource(
                id="r1",
                title="R",
                status="Active",
                areas=["Work", "Home"],
                tags=["a", "b"],
                created_at=_STAMP,
                updated_at=_STAMP,
            ),
        ]

    def test_no_filters(self, items: list[BaseItem]) -> None:
        assert filter_items(items) == items

    def test_area_covers_resource_areas(self, items: list[BaseItem]) -> None:
        assert [i.id for i in filter_items(items, area="Home")] == ["t2", "r1"]

    def test_combined(self, items: list[BaseItem]) -> None:
        result = filter_items(items, item_type="Task", status="To Do", tags=["a"])
        assert [i.id for i in result] == ["t1"]

    def test_tags_match_any(self, items: list[BaseItem]) -> None:
        assert len(filter_items(items, tags=["b", "zzz"])) == 2


class TestSortItems:
    def test_title_case_insensitive(self) -> None:
        items = [_task("1", title="beta"), _task("2", title="Alpha"), _task("3", title="gamma")]
        assert [i.title for i in sort_items(items, "title")] == ["Alpha", "beta", "gamma"]
        assert [i.title for i in sort_items(items, "title", "desc")] == ["gamma", "beta", "Alpha"]

    def test_created_at(self) -> None:
        items = [
            _task("new", created_at="2025-08-21T00:00:00.000Z"),
            _task("old", created_at="2025-08-19T00:00:00.000Z"),
        ]
        assert [i.id for i in sort_items(items, "createdAt")] == ["old", "new"]

    def test_unknown_field(self) -> None:
        with pytest.raises(ValueError, match="Unknown sort field"):
            sort_items([], "priority")


class TestPaginate:
    @pytest.mark.parametrize("total", [0, 1, 5, 10])
    @pytest.mark.parametrize("offset", [0, 3, 10])
    @pytest.mark.parametrize("limit", [1, 5, 20])
    def test_has_more(self, total: int, offset: int, limit: int) -> None:
        items = [_task(str(n)) for n in range(total)]
        page, has_more = paginate(items, offset, limit)
        assert has_more == (offset + limit < total)
        assert len(page) == max(0, min(limit, total - offset))
