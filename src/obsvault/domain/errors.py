"""Error kinds raised below the service layer.

The store converts these into :class:`~obsvault.services.result.ServiceError`
payloads whose ``code`` identifies the kind, so callers never have to match
on message text.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """One offending field and what is wrong with it."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class VaultError(Exception):
    """Base class for all vault store errors."""

    code = "VAULT_ERROR"


class ItemValidationError(VaultError):
    """An item or request violates its type's schema.

    Carries every offending field, not just the first.
    """

    code = "VALIDATION_FAILED"

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        joined = ", ".join(str(e) for e in self.errors)
        super().__init__(f"Validation failed: {joined}")


class ItemNotFoundError(VaultError):
    """No item (or no file) exists for the requested ID."""

    code = "NOT_FOUND"

    def __init__(self, item_id: str, *, what: str = "Item") -> None:
        self.item_id = item_id
        super().__init__(f"{what} not found: {item_id}")


class VaultIOError(VaultError):
    """Reading, writing, or walking the vault failed."""

    code = "IO_ERROR"


class ScanCancelledError(VaultIOError):
    """A scan hit its deadline or was cancelled before finishing."""

    code = "SCAN_CANCELLED"


class IndexNotReadyError(VaultError):
    """Search was requested before any scan populated the index."""

    code = "INDEX_NOT_READY"

    def __init__(self) -> None:
        super().__init__("Search index not initialized; scan the vault first")
