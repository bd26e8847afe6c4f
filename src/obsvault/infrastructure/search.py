"""Fuzzy search index over the current item set.

Each item is projected to one lower-cased string (title, type, status,
tags, type-specific fields, first 200 characters of content). Queries are
scored against the projections with RapidFuzz's partial ratio, which
tolerates misspellings (``projct`` still finds "Project Alpha") and yields
the matched span used for highlighting.

Every mutation rebuilds the projection list from the item list; there is
no incremental structure to keep in sync.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from rapidfuzz import fuzz

from obsvault.domain.errors import IndexNotReadyError
from obsvault.domain.items import BaseItem, item_area_matches
from obsvault.domain.requests import SearchRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchResults:
    """Matches after filters and limit.

    ``total`` counts filtered matches before the limit, so
    ``len(items) <= total`` and truncation is detectable. ``highlights``
    maps item id to matched ``(start, end)`` spans in its projection; an id
    with no entry had nothing highlightable.
    """

    items: list[BaseItem]
    total: int
    highlights: dict[str, list[tuple[int, int]]] = field(default_factory=dict)
    scores: dict[str, float] = field(default_factory=dict)


class SearchIndex:
    """Fuzzy-searchable projection of the vault's items."""

    def __init__(
        self,
        *,
        min_score: float = 60.0,
        default_limit: int = 20,
        max_limit: int = 100,
        slow_query_ms: float = 100.0,
    ) -> None:
        self._min_score = min_score
        self._default_limit = default_limit
        self._max_limit = max_limit
        self._slow_query_ms = slow_query_ms
        self._items: list[BaseItem] = []
        self._projections: list[str] = []
        self._last_updated: datetime | None = None
        self._hits = 0
        self._misses = 0
        self._lock = threading.RLock()

    # --- Building ---

    def _rebuild(self) -> None:
        self._projections = [item.search_text() for item in self._items]
        # Upserts refresh a populated index but never populate a fresh one.
        if self._last_updated is not None:
            self._last_updated = datetime.now(UTC)

    def update_index(self, items: Iterable[BaseItem]) -> None:
        """Replace the indexed items wholesale and mark the index ready."""
        with self._lock:
            self._items = list(items)
            self._last_updated = datetime.now(UTC)
            self._rebuild()

    def add_to_index(self, item: BaseItem) -> None:
        self.update_item_in_index(item)

    def update_item_in_index(self, item: BaseItem) -> None:
        """Upsert *item* by id, keeping its position when already present."""
        with self._lock:
            for i, existing in enumerate(self._items):
                if existing.id == item.id:
                    self._items[i] = item
                    break
            else:
                self._items.append(item)
            self._rebuild()

    def remove_from_index(self, item_id: str) -> bool:
        with self._lock:
            before = len(self._items)
            self._items = [item for item in self._items if item.id != item_id]
            removed = len(self._items) != before
            self._rebuild()
            return removed

    def rebuild(self) -> None:
        with self._lock:
            self._rebuild()

    def clear(self) -> None:
        """Drop all items and statistics; the index becomes not-ready."""
        with self._lock:
            self._items = []
            self._projections = []
            self._last_updated = None
            self._hits = 0
            self._misses = 0

    # --- Querying ---

    def search(self, request: SearchRequest) -> SearchResults:
        """Score, filter (type, area, status, tags), then limit.

        Raises:
            IndexNotReadyError: If the index has never been populated.
        """
        started = time.perf_counter()
        with self._lock:
            if self._last_updated is None:
                self._misses += 1
                raise IndexNotReadyError
            try:
                results = self._search(request)
            except Exception:
                self._misses += 1
                raise
            self._hits += 1

        elapsed_ms = (time.perf_counter() - started) * 1000
        if elapsed_ms > self._slow_query_ms:
            logger.warning(
                "Slow search %r: %.1fms over %d items", request.query, elapsed_ms, self.size
            )
        return results

    def _search(self, request: SearchRequest) -> SearchResults:
        query = request.query.strip().lower()
        scored: list[tuple[float, BaseItem]] = []
        highlights: dict[str, list[tuple[int, int]]] = {}
        for item, text in zip(self._items, self._projections, strict=True):
            if not query:
                scored.append((100.0, item))
                continue
            alignment = fuzz.partial_ratio_alignment(query, text, score_cutoff=self._min_score)
            if alignment is None:
                continue
            scored.append((alignment.score, item))
            if alignment.dest_end > alignment.dest_start:
                highlights[item.id] = [(alignment.dest_start, alignment.dest_end)]

        # Stable: equal scores keep insertion order.
        scored.sort(key=lambda pair: -pair[0])

        matches = [item for _score, item in scored]
        if request.type is not None:
            matches = [item for item in matches if item.type == request.type]
        if request.area is not None:
            matches = [item for item in matches if item_area_matches(item, request.area)]
        if request.status is not None:
            matches = [item for item in matches if item.status == request.status]
        if request.tags:
            wanted = set(request.tags)
            matches = [item for item in matches if wanted.intersection(item.tags)]

        total = len(matches)
        limit = min(request.limit or self._default_limit, self._max_limit)
        page = matches[:limit]
        kept = {item.id for item in page}
        return SearchResults(
            items=page,
            total=total,
            highlights={k: v for k, v in highlights.items() if k in kept},
            scores={item.id: score for score, item in scored if item.id in kept},
        )

    # --- Introspection ---

    @property
    def size(self) -> int:
        return len(self._items)

    @property
    def is_ready(self) -> bool:
        return self._last_updated is not None

    @property
    def last_updated(self) -> datetime | None:
        return self._last_updated

    def age_seconds(self) -> float | None:
        if self._last_updated is None:
            return None
        return (datetime.now(UTC) - self._last_updated).total_seconds()

    def hit_rate(self) -> float:
        total = self._hits + self._misses
        return self._hits / total if total else 0.0

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._items),
                "hit_rate": self.hit_rate(),
                "total_searches": self._hits + self._misses,
                "last_updated": self._last_updated.isoformat() if self._last_updated else None,
            }
