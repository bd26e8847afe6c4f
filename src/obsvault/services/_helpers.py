"""Shared helper functions for timestamps."""

from __future__ import annotations

from datetime import UTC, datetime


def now_iso() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and ``Z``."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO date or datetime; ``None`` when absent or unparseable.

    Naive values are taken as UTC so they compare with aware ones.

    Examples:
        >>> parse_timestamp("2025-09-01").isoformat()
        '2025-09-01T00:00:00+00:00'
        >>> parse_timestamp("not a date") is None
        True
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
