"""Pure filtering, ordering, and paging over item lists."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime

from obsvault.domain.items import BaseItem, Task, item_area_matches, item_due_date
from obsvault.domain.types import DONE_STATUSES, ItemType
from obsvault.services._helpers import parse_timestamp

# Outstanding-task ordering; unlisted statuses sort after these.
STATUS_PRIORITY: dict[str, int] = {
    "In Progress": 1,
    "To Do": 2,
    "Blocked": 3,
    "Unknown": 4,
}
_OTHER_STATUS = 5
_FAR_FUTURE = datetime.max.replace(tzinfo=UTC)


def filter_items(
    items: Iterable[BaseItem],
    *,
    item_type: ItemType | str | None = None,
    area: str | None = None,
    status: str | None = None,
    tags: Sequence[str] | None = None,
) -> list[BaseItem]:
    """Apply the type, area, status, and any-tag filters in that order."""
    result = list(items)
    if item_type is not None:
        result = [i for i in result if i.type == item_type]
    if area is not None:
        result = [i for i in result if item_area_matches(i, area)]
    if status is not None:
        result = [i for i in result if i.status == status]
    if tags:
        wanted = set(tags)
        result = [i for i in result if wanted.intersection(i.tags)]
    return result


def outstanding_tasks(items: Iterable[BaseItem]) -> list[Task]:
    """Tasks not Done/Completed, by status priority then earliest due date.

    Tasks without a due date come last within their status group.
    """
    tasks = [i for i in items if isinstance(i, Task) and i.status not in DONE_STATUSES]

    def _key(task: Task) -> tuple[int, int, datetime]:
        due = parse_timestamp(task.due_date)
        return (
            STATUS_PRIORITY.get(task.status, _OTHER_STATUS),
            0 if due is not None else 1,
            due or _FAR_FUTURE,
        )

    return sorted(tasks, key=_key)


_STRING_KEYS: dict[str, Callable[[BaseItem], str]] = {
    "title": lambda i: i.title.casefold(),
    "status": lambda i: i.status.casefold(),
}

_DATE_KEYS: dict[str, Callable[[BaseItem], datetime | None]] = {
    "dueDate": lambda i: parse_timestamp(item_due_date(i)),
    "createdAt": lambda i: parse_timestamp(i.created_at),
    "updatedAt": lambda i: parse_timestamp(i.updated_at),
}


def sort_items(items: Iterable[BaseItem], sort_by: str, sort_order: str = "asc") -> list[BaseItem]:
    """Sort by a list field. Items with no (or an unparseable) date go last
    in either direction.

    Raises:
        ValueError: For an unknown *sort_by*.
    """
    reverse = sort_order == "desc"
    if sort_by in _STRING_KEYS:
        return sorted(items, key=_STRING_KEYS[sort_by], reverse=reverse)
    if sort_by in _DATE_KEYS:
        key = _DATE_KEYS[sort_by]
        keyed = [(key(i), i) for i in items]
        present = [pair for pair in keyed if pair[0] is not None]
        missing = [item for value, item in keyed if value is None]
        present.sort(key=lambda pair: pair[0], reverse=reverse)  # type: ignore[arg-type,return-value]
        return [item for _value, item in present] + missing
    msg = f"Unknown sort field: {sort_by!r}"
    raise ValueError(msg)


def paginate(items: Sequence[BaseItem], offset: int, limit: int) -> tuple[list[BaseItem], bool]:
    """Return ``(page, has_more)`` where ``has_more = offset + limit < len(items)``."""
    return list(items[offset : offset + limit]), offset + limit < len(items)
