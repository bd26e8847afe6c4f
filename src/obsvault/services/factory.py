"""ItemFactory: builds validated items, their markdown, and their paths.

Pipeline: PARSE → BUILD → VALIDATE → RENDER → LOCATE

Nothing here touches the disk; :class:`~obsvault.services.store.VaultStore`
persists what the factory produces.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from obsvault.domain.errors import FieldError, ItemValidationError
from obsvault.domain.ids import generate_item_id
from obsvault.domain.items import (
    BaseItem,
    ValidationResult,
    field_errors_from_pydantic,
    item_class,
)
from obsvault.domain.requests import (
    CreateAreaRequest,
    CreateEpicRequest,
    CreateResourceRequest,
    CreateTaskRequest,
    parse_create_request,
)
from obsvault.domain.types import DEFAULT_STATUS, ItemType
from obsvault.infrastructure.filesystem import resolve_item_path, resolve_renamed_path
from obsvault.infrastructure.templates import TemplateRegistry

AnyCreateRequest = CreateTaskRequest | CreateEpicRequest | CreateAreaRequest | CreateResourceRequest


@dataclass(frozen=True)
class ItemCreation:
    """A new item with its rendered file and target path."""

    item: BaseItem
    markdown: str
    file_path: Path


def _timestamps() -> tuple[int, str]:
    millis = int(time.time() * 1000)
    stamp = datetime.fromtimestamp(millis / 1000, UTC)
    return millis, stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ItemFactory:
    """Constructs items of every type from requests, clones, or templates."""

    def __init__(self, vault_root: Path, templates: TemplateRegistry) -> None:
        self._root = vault_root
        self._templates = templates

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_item(self, request: AnyCreateRequest | dict[str, Any]) -> ItemCreation:
        """Build a new item from a create request.

        Raises:
            ItemValidationError: Listing every offending field.
        """
        # ── PARSE ──
        req = parse_create_request(request)

        # ── BUILD ──
        millis, now = _timestamps()
        data: dict[str, Any] = {
            "id": generate_item_id(req.title, req.type, now_ms=millis),
            "type": req.type,
            "title": req.title,
            "status": req.status or DEFAULT_STATUS[ItemType(req.type)],
            "content": req.content,
            "tags": list(req.tags),
            "created_at": now,
            "updated_at": now,
        }
        data.update(_type_fields(req))

        return self._finish(data)

    def clone_item(self, original: BaseItem, overrides: dict[str, Any] | None = None) -> ItemCreation:
        """Copy *original* with *overrides* applied, under a fresh id and timestamps.

        Raises:
            ItemValidationError: If an override is unknown or immutable, or
                the clone breaks a business rule.
        """
        cls = type(original)
        changes, errors = cls.normalize_changes(overrides or {})
        if errors:
            raise ItemValidationError(errors)

        data = {**original.model_dump(), **changes}
        millis, now = _timestamps()
        data["id"] = generate_item_id(str(data["title"]), original.type, now_ms=millis)
        data["created_at"] = now
        data["updated_at"] = now
        return self._finish(data)

    def create_template_item(self, item_type: ItemType | str, title: str) -> BaseItem:
        """A minimally populated item for previews; not validated, not written."""
        kind = ItemType(item_type)
        millis, now = _timestamps()
        return item_class(kind).model_validate(
            {
                "id": generate_item_id(title, kind, now_ms=millis),
                "type": str(kind),
                "title": title,
                "status": DEFAULT_STATUS[kind],
                "created_at": now,
                "updated_at": now,
            }
        )

    def validate_item(self, item: BaseItem) -> ValidationResult:
        """Check an existing item against its type's creation rules."""
        return type(item).validate_create(item.model_dump())

    def render(self, item: BaseItem) -> str:
        return self._templates.apply_template(item)

    def file_path_for(self, item: BaseItem) -> Path:
        """Target path from type and sanitized title.

        Raises:
            ItemValidationError: If the title cannot form a filename.
        """
        try:
            return resolve_item_path(self._root, item.type, item.title)
        except ValueError as exc:
            raise ItemValidationError([FieldError("title", str(exc))]) from exc

    def renamed_path_for(self, item: BaseItem, current: Path) -> Path:
        """Where *current* moves after *item* was retitled; same folder.

        Raises:
            ItemValidationError: If the title cannot form a filename.
        """
        try:
            return resolve_renamed_path(self._root, current, item.title)
        except ValueError as exc:
            raise ItemValidationError([FieldError("title", str(exc))]) from exc

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _finish(self, data: dict[str, Any]) -> ItemCreation:
        # ── VALIDATE ──
        cls = item_class(data["type"])
        errors = list(cls.validate_create(data).errors)
        try:
            item = cls.model_validate(data)
        except ValidationError as exc:
            errors.extend(field_errors_from_pydantic(exc))
            raise ItemValidationError(errors) from exc
        if errors:
            raise ItemValidationError(errors)

        # ── RENDER + LOCATE ──
        return ItemCreation(item=item, markdown=self.render(item), file_path=self.file_path_for(item))


def _type_fields(req: BaseModel) -> dict[str, Any]:
    """Type-specific fields and defaults for a new item."""
    match req:
        case CreateTaskRequest():
            return {
                "due_date": req.due_date,
                "parent_projects": list(req.parent_projects),
                "area": req.area,
                "priority": req.priority or "Medium",
            }
        case CreateEpicRequest():
            return {
                "due_date": req.due_date,
                "area": req.area,
                "image": req.image,
                "tasks": [],
            }
        case CreateAreaRequest():
            return {
                "maintenance": req.maintenance or "Weekly",
                "pinned": req.pinned,
                "purpose": req.purpose,
                "active_projects": [],
            }
        case CreateResourceRequest():
            return {
                "pinned": req.pinned,
                "areas": list(req.areas),
                "purpose": req.purpose,
                "content_overview": req.content_overview,
                "key_topics": list(req.key_topics),
                "usage_notes": req.usage_notes,
                "maintenance": req.maintenance,
            }
        case _:
            msg = f"Unhandled request type: {type(req).__name__}"
            raise TypeError(msg)
