"""Item types, conventional status vocabularies, and the vault directory map.

The four item kinds live in three type-keyed directories under the vault
root. An item's type alone selects its directory.
"""

from __future__ import annotations

from enum import StrEnum


class ItemType(StrEnum):
    """The closed set of item kinds stored in the vault."""

    TASK = "Task"
    EPIC = "Epic"
    AREA = "Area"
    RESOURCE = "Resource"


class Directory(StrEnum):
    """Fixed vault directories, relative to the vault root."""

    PROJECTS = "_projects"
    AREAS = "_areas"
    RESOURCES = "_resources"
    TEMPLATES = "_templates"
    BACKUPS = "_backups"


# Conventional status vocabularies. Status is free-form on disk; these are
# enforced only when an item is created or its status is changed.
TASK_STATUSES: tuple[str, ...] = ("To Do", "In Progress", "Done", "Blocked")
EPIC_STATUSES: tuple[str, ...] = ("Planning", "Active", "On Hold", "Completed")
AREA_STATUSES: tuple[str, ...] = ("Active", "Inactive", "Archived")
RESOURCE_STATUSES: tuple[str, ...] = ("Active", "Archived")

PRIORITIES: tuple[str, ...] = ("Low", "Medium", "High", "Urgent")
MAINTENANCE_FREQUENCIES: tuple[str, ...] = ("Daily", "Weekly", "Monthly", "Quarterly")

STATUS_VALUES: dict[ItemType, tuple[str, ...]] = {
    ItemType.TASK: TASK_STATUSES,
    ItemType.EPIC: EPIC_STATUSES,
    ItemType.AREA: AREA_STATUSES,
    ItemType.RESOURCE: RESOURCE_STATUSES,
}

DEFAULT_STATUS: dict[ItemType, str] = {
    ItemType.TASK: "To Do",
    ItemType.EPIC: "Planning",
    ItemType.AREA: "Active",
    ItemType.RESOURCE: "Active",
}

# Statuses that mark a task as finished.
DONE_STATUSES = frozenset({"Done", "Completed"})

TYPE_DIRECTORIES: dict[ItemType, Directory] = {
    ItemType.TASK: Directory.PROJECTS,
    ItemType.EPIC: Directory.PROJECTS,
    ItemType.AREA: Directory.AREAS,
    ItemType.RESOURCE: Directory.RESOURCES,
}

# Which frontmatter ``Type`` values each scanned directory accepts.
DIRECTORY_ALLOWED_TYPES: dict[Directory, frozenset[ItemType]] = {
    Directory.PROJECTS: frozenset({ItemType.TASK, ItemType.EPIC}),
    Directory.AREAS: frozenset({ItemType.AREA}),
    Directory.RESOURCES: frozenset({ItemType.RESOURCE}),
}

MARKDOWN_SUFFIX = ".md"


def directory_for(item_type: ItemType | str) -> Directory:
    """Return the storage directory for *item_type*.

    Raises:
        ValueError: If *item_type* is not one of the four item kinds.
    """
    try:
        return TYPE_DIRECTORIES[ItemType(item_type)]
    except ValueError:
        msg = f"Unknown item type: {item_type!r}"
        raise ValueError(msg) from None
