"""Item models: the ``VaultItem`` tagged union and its business rules.

Each model's attributes map to a human-readable frontmatter key
(``due_date`` <-> ``Due Date``). Internal field names are snake_case with
camelCase aliases (``dueDate``), which is also the shape accepted from
tool arguments.

``VaultItem`` is a closed union discriminated on ``type``. Code that reads
type-specific fields matches on the concrete class::

    match item:
        case Task() | Epic(): ...
        case Area(): ...
        case Resource(): ...

Validation lives on the model hierarchy, as in the create/update paths:

- ``validate_create()``: every business-rule violation for a new item.
- ``validate_update()``: violations caused by the changed fields only, plus
  immutable and unknown field checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Any, ClassVar, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from obsvault.domain.errors import FieldError
from obsvault.domain.types import (
    MAINTENANCE_FREQUENCIES,
    PRIORITIES,
    STATUS_VALUES,
    ItemType,
)

MAX_TITLE_LENGTH = 200
MAX_CONTENT_LENGTH = 10_000
SEARCH_CONTENT_PREFIX = 200

# Fields that no update may change.
IMMUTABLE_FIELDS = frozenset({"id", "type", "created_at"})

_MODEL_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValidationResult:
    """Result of an item validation check."""

    valid: bool
    errors: list[FieldError] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[FieldError]) -> ValidationResult:
        return cls(valid=not errors, errors=list(errors))


def field_errors_from_pydantic(exc: ValidationError) -> list[FieldError]:
    """Flatten a pydantic ``ValidationError`` into ``FieldError`` pairs."""
    errors: list[FieldError] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "item"
        errors.append(FieldError(loc, str(err.get("msg", "invalid value"))))
    return errors


# ---------------------------------------------------------------------------
# Value coercion for hand-edited frontmatter
# ---------------------------------------------------------------------------


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _as_optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _as_list(value: Any) -> list[str]:
    """Accept YAML lists or comma-separated strings."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return [str(v) for v in value if v is not None]
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(value)]


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return bool(value)


def _lookup(fm: dict[str, Any], human_key: str, field_name: str) -> Any:
    """Return the first non-null value among the key spellings for a field."""
    for key in (human_key, human_key.lower(), to_camel(field_name), field_name):
        value = fm.get(key)
        if value is not None:
            return value
    return None


def _is_iso_date(value: str) -> bool:
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme and parsed.netloc)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class CurrentFocus(BaseModel):
    """What an Area is focused on right now."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    primary: str = ""
    secondary: str = ""
    ongoing: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.primary or self.secondary or self.ongoing)

    @classmethod
    def from_value(cls, value: Any) -> CurrentFocus:
        """Build from a frontmatter mapping, or a bare string (the primary)."""
        if isinstance(value, CurrentFocus):
            return value
        if isinstance(value, dict):
            return cls(
                primary=_as_str(value.get("primary") or value.get("Primary")),
                secondary=_as_str(value.get("secondary") or value.get("Secondary")),
                ongoing=_as_list(value.get("ongoing") or value.get("Ongoing")),
            )
        return cls(primary=_as_str(value))


class BaseItem(BaseModel):
    """Fields shared by every item kind.

    Subclasses narrow ``type`` to a literal and list their type-specific
    frontmatter keys in ``_frontmatter_keys``.
    """

    model_config = _MODEL_CONFIG

    id: str
    type: str
    title: str
    status: str
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    created_at: str
    updated_at: str

    _item_type: ClassVar[ItemType]
    # (field name, frontmatter key), in emitted order.
    _frontmatter_keys: ClassVar[tuple[tuple[str, str], ...]] = ()

    # --- Frontmatter mapping ---

    def to_frontmatter(self) -> dict[str, Any]:
        """Serialize to an ordered frontmatter dict with human-readable keys.

        Type-specific fields that are unset or empty are omitted.
        """
        fm: dict[str, Any] = {"Type": self.type, "Status": self.status}
        for name, key in self._frontmatter_keys:
            value = self._frontmatter_value(name)
            if value is None or value == "" or value == [] or value == {}:
                continue
            fm[key] = value
        fm["Tags"] = list(self.tags)
        fm["Created"] = self.created_at
        fm["Updated"] = self.updated_at
        return fm

    def _frontmatter_value(self, name: str) -> Any:
        value = getattr(self, name)
        if isinstance(value, CurrentFocus):
            return None if value.is_empty() else value.model_dump()
        if isinstance(value, list):
            return list(value)
        return value

    @classmethod
    def from_frontmatter(
        cls,
        item_id: str,
        fm: dict[str, Any],
        *,
        title: str,
        content: str,
        fallback_timestamp: str,
    ) -> BaseItem:
        """Build an item from scanned frontmatter, applying read defaults."""
        data: dict[str, Any] = {
            "id": item_id,
            "type": str(cls._item_type),
            "title": _as_str(_lookup(fm, "Title", "title"), title) or title,
            "status": _as_str(_lookup(fm, "Status", "status"), "Active"),
            "content": content,
            "tags": _as_list(_lookup(fm, "Tags", "tags")),
            "created_at": _as_str(_lookup(fm, "Created", "created_at"), fallback_timestamp),
            "updated_at": _as_str(_lookup(fm, "Updated", "updated_at"), fallback_timestamp),
        }
        data.update(cls._read_specific(fm))
        return cls.model_validate(data)

    @classmethod
    def _read_specific(cls, fm: dict[str, Any]) -> dict[str, Any]:
        return {}

    # --- Search ---

    def searchable_fields(self) -> list[str]:
        """Type-specific values folded into the search projection."""
        return []

    def search_text(self) -> str:
        """Lower-cased projection matched by fuzzy search."""
        parts = [self.title, self.type, self.status, *self.tags]
        parts.extend(self.searchable_fields())
        parts.append(self.content[:SEARCH_CONTENT_PREFIX])
        return " ".join(p for p in parts if p).lower()

    # --- Validation ---

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(cls.model_fields)

    @classmethod
    def _rules(cls, data: dict[str, Any]) -> list[FieldError]:
        """Business rules over a full snake_case field dict."""
        errors: list[FieldError] = []
        title = str(data.get("title") or "")
        if not title.strip():
            errors.append(FieldError("title", "Title cannot be empty"))
        elif len(title) > MAX_TITLE_LENGTH:
            errors.append(FieldError("title", "Title too long"))
        if len(str(data.get("content") or "")) > MAX_CONTENT_LENGTH:
            errors.append(FieldError("content", "Content too long"))
        allowed = STATUS_VALUES[cls._item_type]
        if data.get("status") not in allowed:
            errors.append(FieldError("status", f"Status must be one of: {', '.join(allowed)}"))
        return errors

    @classmethod
    def validate_create(cls, data: dict[str, Any]) -> ValidationResult:
        """Validate a new item's fields; collects every violation."""
        return ValidationResult.from_errors(cls._rules(data))

    @classmethod
    def normalize_changes(cls, changes: dict[str, Any]) -> tuple[dict[str, Any], list[FieldError]]:
        """Map alias keys (``dueDate``) to field names and flag bad keys."""
        by_alias = {to_camel(name): name for name in cls.model_fields}
        normalized: dict[str, Any] = {}
        errors: list[FieldError] = []
        for key, value in changes.items():
            name = key if key in cls.model_fields else by_alias.get(key)
            if name is None:
                errors.append(FieldError(key, f"Unknown field for {cls._item_type}"))
            elif name in IMMUTABLE_FIELDS:
                errors.append(FieldError(to_camel(name), "Field cannot be changed"))
            else:
                normalized[name] = value
        return normalized, errors

    @classmethod
    def validate_update(
        cls,
        existing: dict[str, Any],
        changes: dict[str, Any],
    ) -> ValidationResult:
        """Validate *changes* (snake_case) against *existing*.

        Only violations on changed fields are reported, so a hand-edited
        item with a free-form status can still have its tags updated.
        """
        merged = {**existing, **changes}
        changed = {to_camel(name) for name in changes}
        errors = [e for e in cls._rules(merged) if e.field.split(".")[0] in changed]
        return ValidationResult.from_errors(errors)


class Task(BaseItem):
    """A unit of work, optionally linked to projects and an area."""

    type: Literal["Task"] = "Task"
    due_date: str | None = None
    parent_projects: list[str] = Field(default_factory=list)
    area: str | None = None
    priority: str | None = "Medium"

    _item_type: ClassVar[ItemType] = ItemType.TASK
    _frontmatter_keys: ClassVar[tuple[tuple[str, str], ...]] = (
        ("due_date", "Due Date"),
        ("parent_projects", "Parent Projects"),
        ("area", "Area"),
        ("priority", "Priority"),
    )

    @classmethod
    def _read_specific(cls, fm: dict[str, Any]) -> dict[str, Any]:
        return {
            "due_date": _as_optional_str(_lookup(fm, "Due Date", "due_date")),
            "parent_projects": _as_list(_lookup(fm, "Parent Projects", "parent_projects")),
            "area": _as_optional_str(_lookup(fm, "Area", "area")),
            "priority": _as_str(_lookup(fm, "Priority", "priority"), "Medium"),
        }

    def searchable_fields(self) -> list[str]:
        return [self.area or "", self.priority or "", self.due_date or "", *self.parent_projects]

    @classmethod
    def _rules(cls, data: dict[str, Any]) -> list[FieldError]:
        errors = super()._rules(data)
        priority = data.get("priority")
        if priority is not None and priority not in PRIORITIES:
            errors.append(FieldError("priority", f"Priority must be one of: {', '.join(PRIORITIES)}"))
        due = data.get("due_date")
        if due and not _is_iso_date(str(due)):
            errors.append(FieldError("dueDate", "Due date must be an ISO-8601 date or datetime"))
        return errors


class Epic(BaseItem):
    """A project grouping tasks under one area."""

    type: Literal["Epic"] = "Epic"
    due_date: str | None = None
    area: str = ""
    image: str | None = None
    tasks: list[str] = Field(default_factory=list)

    _item_type: ClassVar[ItemType] = ItemType.EPIC
    _frontmatter_keys: ClassVar[tuple[tuple[str, str], ...]] = (
        ("due_date", "Due Date"),
        ("area", "Area"),
        ("image", "Image"),
        ("tasks", "Tasks"),
    )

    @classmethod
    def _read_specific(cls, fm: dict[str, Any]) -> dict[str, Any]:
        return {
            "due_date": _as_optional_str(_lookup(fm, "Due Date", "due_date")),
            "area": _as_str(_lookup(fm, "Area", "area")),
            "image": _as_optional_str(_lookup(fm, "Image", "image")),
            "tasks": _as_list(_lookup(fm, "Tasks", "tasks")),
        }

    def searchable_fields(self) -> list[str]:
        return [self.area, self.due_date or "", *self.tasks]

    @classmethod
    def _rules(cls, data: dict[str, Any]) -> list[FieldError]:
        errors = super()._rules(data)
        if not str(data.get("area") or "").strip():
            errors.append(FieldError("area", "Area is required for epics"))
        due = data.get("due_date")
        if due and not _is_iso_date(str(due)):
            errors.append(FieldError("dueDate", "Due date must be an ISO-8601 date or datetime"))
        image = data.get("image")
        if image and not _is_url(str(image)):
            errors.append(FieldError("image", "Image must be a URL"))
        return errors


class Area(BaseItem):
    """An ongoing area of responsibility."""

    type: Literal["Area"] = "Area"
    maintenance: str = "Weekly"
    pinned: bool = False
    purpose: str = ""
    active_projects: list[str] = Field(default_factory=list)
    current_focus: CurrentFocus = Field(default_factory=CurrentFocus)

    _item_type: ClassVar[ItemType] = ItemType.AREA
    _frontmatter_keys: ClassVar[tuple[tuple[str, str], ...]] = (
        ("maintenance", "Maintenance"),
        ("pinned", "Pinned"),
        ("purpose", "Purpose"),
        ("active_projects", "Active Projects"),
        ("current_focus", "Current Focus"),
    )

    @classmethod
    def _read_specific(cls, fm: dict[str, Any]) -> dict[str, Any]:
        return {
            "maintenance": _as_str(_lookup(fm, "Maintenance", "maintenance"), "Weekly"),
            "pinned": _as_bool(_lookup(fm, "Pinned", "pinned")),
            "purpose": _as_str(_lookup(fm, "Purpose", "purpose")),
            "active_projects": _as_list(_lookup(fm, "Active Projects", "active_projects")),
            "current_focus": CurrentFocus.from_value(_lookup(fm, "Current Focus", "current_focus")),
        }

    def searchable_fields(self) -> list[str]:
        return [self.purpose, self.maintenance, *self.active_projects, self.current_focus.primary]

    @classmethod
    def _rules(cls, data: dict[str, Any]) -> list[FieldError]:
        errors = super()._rules(data)
        if data.get("maintenance") not in MAINTENANCE_FREQUENCIES:
            errors.append(
                FieldError(
                    "maintenance",
                    f"Maintenance must be one of: {', '.join(MAINTENANCE_FREQUENCIES)}",
                )
            )
        if len(str(data.get("purpose") or "").strip()) < 10:
            errors.append(FieldError("purpose", "Purpose must be at least 10 characters"))
        return errors


class Resource(BaseItem):
    """Reference material supporting one or more areas."""

    type: Literal["Resource"] = "Resource"
    pinned: bool = False
    areas: list[str] = Field(default_factory=list)
    purpose: str = ""
    content_overview: str = ""
    key_topics: list[str] = Field(default_factory=list)
    usage_notes: str = ""
    maintenance: str = ""

    _item_type: ClassVar[ItemType] = ItemType.RESOURCE
    _frontmatter_keys: ClassVar[tuple[tuple[str, str], ...]] = (
        ("pinned", "Pinned"),
        ("areas", "Areas"),
        ("purpose", "Purpose"),
        ("content_overview", "Content Overview"),
        ("key_topics", "Key Topics"),
        ("usage_notes", "Usage Notes"),
        ("maintenance", "Maintenance"),
    )

    @classmethod
    def _read_specific(cls, fm: dict[str, Any]) -> dict[str, Any]:
        return {
            "pinned": _as_bool(_lookup(fm, "Pinned", "pinned")),
            "areas": _as_list(_lookup(fm, "Areas", "areas")),
            "purpose": _as_str(_lookup(fm, "Purpose", "purpose")),
            "content_overview": _as_str(_lookup(fm, "Content Overview", "content_overview")),
            "key_topics": _as_list(_lookup(fm, "Key Topics", "key_topics")),
            "usage_notes": _as_str(_lookup(fm, "Usage Notes", "usage_notes")),
            "maintenance": _as_str(_lookup(fm, "Maintenance", "maintenance")),
        }

    def searchable_fields(self) -> list[str]:
        return [
            self.purpose,
            self.content_overview,
            *self.key_topics,
            self.usage_notes,
            *self.areas,
        ]

    @classmethod
    def _rules(cls, data: dict[str, Any]) -> list[FieldError]:
        errors = super()._rules(data)
        if not data.get("areas"):
            errors.append(FieldError("areas", "At least one area must be specified"))
        if len(str(data.get("purpose") or "").strip()) < 10:
            errors.append(FieldError("purpose", "Purpose must be at least 10 characters"))
        if len(str(data.get("content_overview") or "").strip()) < 20:
            errors.append(
                FieldError("contentOverview", "Content overview must be at least 20 characters")
            )
        if not data.get("key_topics"):
            errors.append(FieldError("keyTopics", "At least one key topic is required"))
        if len(str(data.get("usage_notes") or "").strip()) < 10:
            errors.append(FieldError("usageNotes", "Usage notes must be at least 10 characters"))
        if not str(data.get("maintenance") or "").strip():
            errors.append(FieldError("maintenance", "Maintenance information is required"))
        return errors


# ---------------------------------------------------------------------------
# Union + registry
# ---------------------------------------------------------------------------

VaultItem = Annotated[Task | Epic | Area | Resource, Field(discriminator="type")]

ITEM_ADAPTER: TypeAdapter[Task | Epic | Area | Resource] = TypeAdapter(VaultItem)

ITEM_CLASSES: dict[ItemType, type[BaseItem]] = {
    ItemType.TASK: Task,
    ItemType.EPIC: Epic,
    ItemType.AREA: Area,
    ItemType.RESOURCE: Resource,
}


def item_class(item_type: ItemType | str) -> type[BaseItem]:
    """Return the model class for *item_type*.

    Raises:
        ValueError: If *item_type* is not one of the four item kinds.
    """
    try:
        return ITEM_CLASSES[ItemType(item_type)]
    except ValueError:
        msg = f"Unknown item type: {item_type!r}"
        raise ValueError(msg) from None


def item_area_matches(item: BaseItem, area: str) -> bool:
    """Area filter: Task/Epic compare ``area``; Resource checks ``areas``."""
    match item:
        case Task() | Epic():
            return item.area == area
        case Resource():
            return area in item.areas
        case Area():
            return False
        case _:
            msg = f"Unhandled item class: {type(item).__name__}"
            raise TypeError(msg)


def item_areas(item: BaseItem) -> list[str]:
    """Areas an item belongs to: one for Tasks/Epics that set it, many for Resources."""
    match item:
        case Task() | Epic():
            return [item.area] if item.area else []
        case Resource():
            return list(item.areas)
        case Area():
            return []
        case _:
            msg = f"Unhandled item class: {type(item).__name__}"
            raise TypeError(msg)


def item_due_date(item: BaseItem) -> str | None:
    """Due date for Tasks and Epics, ``None`` for the other kinds."""
    match item:
        case Task() | Epic():
            return item.due_date
        case Area() | Resource():
            return None
        case _:
            msg = f"Unhandled item class: {type(item).__name__}"
            raise TypeError(msg)
