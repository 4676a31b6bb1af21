from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

# Ordered path segments and parameters, e.g. ("lapin", "42", "genealogy")
QueryKey = tuple[Any, ...]


class FetchStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"
    SUCCESS = "success"


class CacheEntry(BaseModel):
    """Cached server response for one query key."""

    model_config = ConfigDict(frozen=True)

    key: QueryKey
    data: Any = None  # Opaque JSON-shaped payload
    status: FetchStatus = FetchStatus.IDLE
    fetched_at: datetime | None = None
    stale: bool = False
    error: str | None = None
    version: int = 0  # Sequence number of the fetch that produced ``data``
