"""VaultStore: the orchestrator behind every CLI command and MCP tool.

Owns the LRU item cache and the search index, and is the only component
that writes to the vault. Reads go to the cache first and fall back to
the scanner.

Pipelines:
  create: BUILD → LOCK → PERSIST → INDEX → RESPOND
  update: LOCK → LOAD → VALIDATE → APPLY → BACKUP → PERSIST → INDEX → RESPOND
  delete: LOCK → LOCATE → BACKUP → REMOVE → EVICT → RESPOND

INVARIANT: every operation returns a ServiceResult, except
``search_items`` which raises IndexNotReadyError when no scan has
populated the index yet.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from obsvault.config.settings import ObsSettings
from obsvault.domain.errors import (
    FieldError,
    ItemNotFoundError,
    ItemValidationError,
    VaultError,
    VaultIOError,
)
from obsvault.domain.items import BaseItem, CurrentFocus, field_errors_from_pydantic
from obsvault.domain.requests import ListItemsRequest, SearchRequest
from obsvault.domain.types import ItemType
from obsvault.infrastructure.filesystem import backup_file, delete_file, write_text
from obsvault.infrastructure.locks import KeyedLock
from obsvault.infrastructure.scanner import VaultScanner
from obsvault.infrastructure.search import SearchIndex
from obsvault.infrastructure.templates import TemplateRegistry
from obsvault.services._helpers import now_iso
from obsvault.services.factory import AnyCreateRequest, ItemFactory
from obsvault.services.queries import filter_items, paginate, sort_items
from obsvault.services.result import ServiceError, ServiceResult

logger = logging.getLogger(__name__)


def _parse(model: type[SearchRequest] | type[ListItemsRequest], raw: Any) -> Any:
    if isinstance(raw, model):
        return raw
    try:
        return model.model_validate(raw or {})
    except ValidationError as exc:
        raise ItemValidationError(field_errors_from_pydantic(exc)) from exc


class VaultStore:
    """Typed item store over one vault directory.

    Args:
        settings: Resolved settings; ``settings.vault_root`` is the vault.
        templates: Template registry shared with the scanner and factory.
            Built from the vault root when omitted.
    """

    def __init__(self, settings: ObsSettings, *, templates: TemplateRegistry | None = None) -> None:
        self._settings = settings
        self._root = settings.vault_root
        self._templates = templates or TemplateRegistry(self._root)
        self._scanner = VaultScanner(
            self._root,
            self._templates,
            timeout_seconds=settings.scan.timeout_seconds,
            stale_after_seconds=settings.scan.stale_after_seconds,
        )
        self._index = SearchIndex(
            min_score=settings.search.min_score,
            default_limit=settings.search.default_limit,
            max_limit=settings.search.max_limit,
            slow_query_ms=settings.search.slow_query_ms,
        )
        self._factory = ItemFactory(self._root, self._templates)
        self._cache: OrderedDict[str, BaseItem] = OrderedDict()
        self._lock = threading.RLock()
        self._keys = KeyedLock()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def root(self) -> Path:
        return self._root

    @property
    def settings(self) -> ObsSettings:
        return self._settings

    @property
    def templates(self) -> TemplateRegistry:
        return self._templates

    @property
    def scanner(self) -> VaultScanner:
        return self._scanner

    @property
    def index(self) -> SearchIndex:
        return self._index

    @property
    def factory(self) -> ItemFactory:
        return self._factory

    # ------------------------------------------------------------------
    # LRU cache
    # ------------------------------------------------------------------

    def _cache_get(self, item_id: str) -> BaseItem | None:
        with self._lock:
            item = self._cache.get(item_id)
            if item is not None:
                self._cache.move_to_end(item_id)
            return item

    def _cache_put(self, item: BaseItem) -> None:
        if not self._settings.cache.enabled:
            return
        with self._lock:
            self._cache[item.id] = item
            self._cache.move_to_end(item.id)
            while len(self._cache) > self._settings.cache.max_size:
                self._cache.popitem(last=False)

    def _cache_pop(self, item_id: str) -> bool:
        with self._lock:
            return self._cache.pop(item_id, None) is not None

    def _load(self, item_id: str) -> BaseItem:
        """Cache first, then the scanner (which rescans once on a miss).

        Raises:
            ItemNotFoundError: If the item is unknown after a rescan.
            VaultIOError: If that rescan fails.
        """
        item = self._cache_get(item_id)
        if item is not None:
            return item
        item = self._scanner.find_item_by_id(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        self._cache_put(item)
        return item

    # ------------------------------------------------------------------
    # Scan
    # ------------------------------------------------------------------

    def scan_vault(self, *, cancel: threading.Event | None = None) -> ServiceResult:
        """Rescan from disk; replace the cache and rebuild the index.

        On failure the cache and index keep their previous contents.
        """
        op = "scan_vault"
        try:
            items = self._scanner.scan_all(cancel=cancel)
        except VaultError as exc:
            logger.info("Vault scan failed: %s", exc)
            return ServiceResult.failure(op, exc)

        with self._lock:
            self._cache.clear()
            for item in items:
                self._cache_put(item)
            self._index.update_index(items)

        counts = {str(t): sum(1 for i in items if i.type == t) for t in ItemType}
        return ServiceResult(ok=True, op=op, data={"items": items, "count": len(items), "by_type": counts})

    def ensure_index(self) -> ServiceResult | None:
        """Scan when the index was never built or the last scan is stale.

        Returns the scan result when a scan ran, else ``None``.
        """
        if self._index.is_ready and not self._scanner.is_stale():
            return None
        return self.scan_vault()

    # ------------------------------------------------------------------
    # Create / read / update / delete
    # ------------------------------------------------------------------

    def create_item(self, request: AnyCreateRequest | dict[str, Any]) -> ServiceResult:
        """Build, write, and index a new item."""
        op = "create_item"

        # ── BUILD ──
        try:
            created = self._factory.create_item(request)
        except ItemValidationError as exc:
            return ServiceResult.failure(op, exc)

        item, path = created.item, created.file_path
        with self._keys.hold_many([item.id, f"path:{path}"]):
            # ── PERSIST ──
            if path.exists():
                exc = ItemValidationError(
                    [FieldError("title", f"An item file already exists: {path.name}")]
                )
                return ServiceResult.failure(op, exc)
            try:
                write_text(path, created.markdown)
            except OSError as err:
                return ServiceResult.failure(op, VaultIOError(f"Cannot write {path}: {err}"))

            # ── INDEX ──
            self._scanner.remember(item, path)
            with self._lock:
                self._cache_put(item)
                self._index.add_to_index(item)

        logger.debug("Created %s at %s", item.id, path)
        return ServiceResult(ok=True, op=op, data={"item": item, "path": str(path)})

    def get_item(self, item_id: str) -> ServiceResult:
        op = "get_item"
        try:
            item = self._load(item_id)
        except VaultError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"item": item})

    def update_item(self, item_id: str, updates: dict[str, Any]) -> ServiceResult:
        """Merge *updates* into an item and rewrite its whole file.

        Keys may be camelCase (``dueDate``) or snake_case. A partial
        ``currentFocus`` mapping merges into the existing one. The located
        file is rewritten in place; a title change renames it within its
        own folder.
        """
        op = "update_item"
        warnings: list[str] = []

        with self._keys.hold(item_id):
            # ── LOAD ──
            try:
                current = self._load(item_id)
            except VaultError as exc:
                return ServiceResult.failure(op, exc)

            # ── VALIDATE ──
            cls = type(current)
            changes, errors = cls.normalize_changes(updates)
            if not changes and not errors:
                errors.append(FieldError("updates", "At least one update field must be provided"))
            if "current_focus" in changes and isinstance(changes["current_focus"], dict):
                focus = current.model_dump().get("current_focus") or {}
                changes["current_focus"] = CurrentFocus.from_value(
                    {**focus, **changes["current_focus"]}
                ).model_dump()
            errors.extend(cls.validate_update(current.model_dump(), changes).errors)
            if errors:
                return ServiceResult.failure(op, ItemValidationError(errors))

            # ── APPLY ──
            try:
                item = cls.model_validate(
                    {**current.model_dump(), **changes, "updated_at": now_iso()}
                )
            except ValidationError as exc:
                return ServiceResult.failure(
                    op, ItemValidationError(field_errors_from_pydantic(exc))
                )

            try:
                old_path = self._scanner.find_file_path_by_id(item_id)
            except VaultError as exc:
                return ServiceResult.failure(op, exc)
            if old_path is None:
                return ServiceResult.failure(op, ItemNotFoundError(item_id, what="File for item"))
            new_path = old_path
            if item.title != current.title:
                try:
                    new_path = self._factory.renamed_path_for(item, old_path)
                except ItemValidationError as exc:
                    return ServiceResult.failure(op, exc)

            # Same key a create takes for this path.
            with self._keys.hold(f"path:{new_path}"):
                if new_path != old_path and new_path.exists():
                    exc = ItemValidationError(
                        [FieldError("title", f"An item file already exists: {new_path.name}")]
                    )
                    return ServiceResult.failure(op, exc)

                # ── BACKUP ──
                self._backup(old_path, warnings)

                # ── PERSIST ──
                try:
                    write_text(new_path, self._factory.render(item))
                    if new_path != old_path:
                        self._move_cleanup(old_path, new_path)
                except OSError as err:
                    return ServiceResult.failure(
                        op, VaultIOError(f"Cannot write {new_path}: {err}")
                    )

                # ── INDEX ──
                self._scanner.remember(item, new_path)
                with self._lock:
                    self._cache_put(item)
                    self._index.update_item_in_index(item)

        updated_fields = [to_camel(name) for name in changes]
        return ServiceResult(
            ok=True,
            op=op,
            data={"item": item, "updated_fields": updated_fields, "path": str(new_path)},
            warnings=warnings,
        )

    def delete_item(self, item_id: str) -> ServiceResult:
        """Delete an item's file and evict it from cache and index."""
        op = "delete_item"
        warnings: list[str] = []

        with self._keys.hold(item_id):
            # ── LOCATE ──
            try:
                path = self._scanner.find_file_path_by_id(item_id)
            except VaultError as exc:
                return ServiceResult.failure(op, exc)
            if path is None:
                return ServiceResult.failure(op, ItemNotFoundError(item_id))

            # ── BACKUP + REMOVE ──
            self._backup(path, warnings)
            try:
                delete_file(path)
            except FileNotFoundError:
                self._evict(item_id)
                return ServiceResult.failure(op, ItemNotFoundError(item_id, what="File for item"))
            except OSError as err:
                return ServiceResult.failure(op, VaultIOError(f"Cannot delete {path}: {err}"))

            # ── EVICT ──
            was_cached = self._evict(item_id)

        return ServiceResult(
            ok=True,
            op=op,
            data={"id": item_id, "path": str(path), "was_cached": was_cached},
            warnings=warnings,
        )

    def _evict(self, item_id: str) -> bool:
        self._scanner.forget(item_id)
        with self._lock:
            self._index.remove_from_index(item_id)
            return self._cache_pop(item_id)

    def _backup(self, path: Path, warnings: list[str]) -> None:
        if not self._settings.backup.enabled:
            return
        if backup_file(self._root, path) is None:
            warnings.append(f"Backup of {path.name} failed")

    @staticmethod
    def _move_cleanup(old_path: Path, new_path: Path) -> None:
        """Remove the pre-rename file; undo the new write if that fails."""
        try:
            old_path.unlink(missing_ok=True)
        except OSError:
            new_path.unlink(missing_ok=True)
            raise

    # ------------------------------------------------------------------
    # Search / list
    # ------------------------------------------------------------------

    def search_items(self, request: SearchRequest | dict[str, Any]) -> ServiceResult:
        """Fuzzy search over the index.

        Raises:
            IndexNotReadyError: If no scan has populated the index.
        """
        op = "search_items"
        try:
            req = _parse(SearchRequest, request)
        except ItemValidationError as exc:
            return ServiceResult.failure(op, exc)
        results = self._index.search(req)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "items": results.items,
                "total": results.total,
                "highlights": results.highlights,
                "scores": results.scores,
            },
        )

    def list_items(self, request: ListItemsRequest | dict[str, Any] | None = None) -> ServiceResult:
        """Filter, sort, and page over a fresh scan."""
        op = "list_items"
        try:
            req = _parse(ListItemsRequest, request)
            items = self._scanner.scan_all()
        except VaultError as exc:
            return ServiceResult.failure(op, exc)

        filtered = filter_items(
            items, item_type=req.type, area=req.area, status=req.status, tags=req.tags
        )
        ordered = sort_items(filtered, req.sort_by, req.sort_order)
        limit = min(req.limit or self._settings.search.default_limit, self._settings.search.max_limit)
        page, has_more = paginate(ordered, req.offset, limit)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "items": page,
                "total": len(ordered),
                "has_more": has_more,
                "offset": req.offset,
                "limit": limit,
            },
        )

    def _scan_filtered(self, op: str, **filters: Any) -> ServiceResult:
        try:
            items = self._scanner.scan_all()
        except VaultError as exc:
            return ServiceResult.failure(op, exc)
        matched = filter_items(items, **filters)
        return ServiceResult(ok=True, op=op, data={"items": matched, "count": len(matched)})

    def get_items_by_type(self, item_type: ItemType | str) -> ServiceResult:
        return self._scan_filtered("get_items_by_type", item_type=item_type)

    def get_items_by_area(self, area: str) -> ServiceResult:
        return self._scan_filtered("get_items_by_area", area=area)

    def get_items_by_status(self, status: str) -> ServiceResult:
        return self._scan_filtered("get_items_by_status", status=status)

    def get_items_by_tags(self, tags: Iterable[str]) -> ServiceResult:
        return self._scan_filtered("get_items_by_tags", tags=list(tags))

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def bulk_update(self, ids: list[str], updates: dict[str, Any]) -> ServiceResult:
        """Apply the same *updates* to each id; failures are reported per id."""
        return self._bulk("bulk_update", ids, lambda item_id: self.update_item(item_id, updates))

    def bulk_delete(self, ids: list[str]) -> ServiceResult:
        return self._bulk("bulk_delete", ids, self.delete_item)

    def _bulk(self, op: str, ids: list[str], action: Any) -> ServiceResult:
        if not ids:
            exc = ItemValidationError([FieldError("ids", "At least one ID must be provided")])
            return ServiceResult.failure(op, exc)

        succeeded: list[str] = []
        failed: list[dict[str, Any]] = []
        warnings: list[str] = []
        for item_id in ids:
            result: ServiceResult = action(item_id)
            warnings.extend(result.warnings)
            if result.ok:
                succeeded.append(item_id)
            elif result.error is not None:
                failed.append(
                    {"id": item_id, "code": result.error.code, "message": result.error.message}
                )

        all_ok = not failed
        return ServiceResult(
            ok=all_ok,
            op=op,
            data={"succeeded": succeeded, "failed": failed},
            warnings=warnings,
            error=None
            if all_ok
            else ServiceError(
                code="BATCH_PARTIAL",
                message=f"{len(failed)} of {len(ids)} items failed",
            ),
        )

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def get_cache_stats(self) -> dict[str, Any]:
        with self._lock:
            size = len(self._cache)
        return {
            "size": size,
            "max_size": self._settings.cache.max_size,
            "enabled": self._settings.cache.enabled,
            "search": self._index.stats(),
            "scanner": self._scanner.cache_stats(),
        }

    def clear_cache(self) -> None:
        """Drop the item cache, the scanner map, and the search index."""
        with self._lock:
            self._cache.clear()
            self._index.clear()
        self._scanner.clear_cache()
        self._templates.clear_cache()
