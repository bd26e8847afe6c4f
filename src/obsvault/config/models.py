"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, ``obsvault.toml`` only contains
overrides. A vault works with no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- obsvault.toml sections ---


class CacheConfig(BaseModel):
    """[cache] section: the store's LRU item cache."""

    model_config = {"frozen": True}

    enabled: bool = True
    max_size: int = Field(default=1000, ge=1)


class SearchConfig(BaseModel):
    """[search] section."""

    model_config = {"frozen": True}

    default_limit: int = Field(default=20, ge=1)
    max_limit: int = Field(default=100, ge=1)
    min_score: float = Field(default=60.0, ge=0.0, le=100.0)
    slow_query_ms: float = 100.0


class ScanConfig(BaseModel):
    """[scan] section."""

    model_config = {"frozen": True}

    timeout_seconds: float = Field(default=30.0, gt=0)
    stale_after_seconds: float = 300.0


class BackupConfig(BaseModel):
    """[backup] section."""

    model_config = {"frozen": True}

    enabled: bool = True


class ToolsConfig(BaseModel):
    """[tools] section: tool-dispatch text responses."""

    model_config = {"frozen": True}

    outstanding_limit: int = Field(default=7, ge=1)
