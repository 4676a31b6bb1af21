"""In-memory query cache with prefix invalidation.

Entries are keyed by a tuple of path segments and parameters. Staleness is
driven only by explicit ``invalidate`` calls: there is no time-based expiry
and no eviction, so the cache grows for the lifetime of the process.

Out-of-order responses are handled with a monotonic sequence number. Every
loader call and every direct write takes the next number; a response whose
number is lower than the one already stored for its key is discarded, and a
response that started before an invalidation of its key is stored stale.

The cache is mutated only between awaits on the event loop thread, so no
locking is needed.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

from lapgest.models.cache import CacheEntry, FetchStatus, QueryKey

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    Loader = Callable[[], Awaitable[Any]]
    Listener = Callable[[QueryKey], None]

log = structlog.get_logger()


def _normalize_segment(segment: Any) -> Any:
    if isinstance(segment, Enum):
        return segment.value
    if isinstance(segment, (datetime, date)):
        return segment.isoformat()
    if isinstance(segment, Mapping):
        return tuple(f"{k}={_normalize_segment(v)}" for k, v in sorted(segment.items()))
    if isinstance(segment, (list, tuple)):
        return tuple(_normalize_segment(item) for item in segment)
    hash(segment)  # Raises TypeError for unhashable segments
    return segment


def normalize_key(key: Iterable[Any]) -> QueryKey:
    """Turn any sequence of segments into a hashable, comparable key."""
    if isinstance(key, str):
        return (key,)
    return tuple(_normalize_segment(segment) for segment in key)


def key_starts_with(key: QueryKey, prefix: QueryKey) -> bool:
    return len(prefix) <= len(key) and key[: len(prefix)] == prefix


class QueryCache:
    """Process-wide cache of server responses, shared by reference."""

    def __init__(self) -> None:
        self._entries: dict[QueryKey, CacheEntry] = {}
        self._invalidated_at: dict[QueryKey, int] = {}
        self._listeners: dict[QueryKey, list[Listener]] = {}
        self._seq = 0
        # Writes numbered below this started before the last clear()
        self._cleared_at = 0

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read(self, key: Iterable[Any]) -> CacheEntry | None:
        """Return the entry for ``key`` without any network effect."""
        return self._entries.get(normalize_key(key))

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    async def fetch(self, key: Iterable[Any], loader: Loader) -> Any:
        """Return cached data for ``key``, calling ``loader`` only when needed.

        The loader runs when there is no successful entry or the entry is
        stale. Concurrent fetches for one key may each call the loader.
        Loader exceptions are recorded on the entry and re-raised.
        """
        key = normalize_key(key)
        entry = self._entries.get(key)
        if entry is not None and entry.status is FetchStatus.SUCCESS and not entry.stale:
            return entry.data

        seq = self._next_seq()
        if entry is None:
            self._entries[key] = CacheEntry(key=key, status=FetchStatus.LOADING)
        else:
            self._entries[key] = entry.model_copy(update={"status": FetchStatus.LOADING})
        log.debug("cache_miss", key=key, stale=entry is not None and entry.stale)

        try:
            data = await loader()
        except Exception as exc:
            self._record_error(key, seq, exc)
            raise
        return self._store(key, data, seq)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_data(self, key: Iterable[Any], data: Any) -> None:
        """Store ``data`` for ``key`` as a fresh entry."""
        key = normalize_key(key)
        self._store(key, data, self._next_seq())

    def invalidate(self, prefix: Iterable[Any], *, exact: bool = False) -> int:
        """Mark every entry whose key starts with ``prefix`` stale.

        With ``exact`` only the entry whose key equals ``prefix`` is marked.
        Does not refetch. Subscribers of the affected keys are notified.
        Returns the number of entries marked.
        """
        prefix = normalize_key(prefix)
        seq = self._next_seq()
        if exact:
            marked = [prefix] if prefix in self._entries else []
        else:
            marked = [key for key in self._entries if key_starts_with(key, prefix)]
        for key in marked:
            self._entries[key] = self._entries[key].model_copy(update={"stale": True})
            self._invalidated_at[key] = seq
        log.debug("cache_invalidated", prefix=prefix, count=len(marked))

        for key in marked:
            self._notify(key)
        return len(marked)

    def clear(self) -> None:
        """Drop every entry. Subscriptions are kept.

        Loads already in flight still return their result to their caller,
        but nothing they produce is stored.
        """
        self._entries.clear()
        self._invalidated_at.clear()
        self._cleared_at = self._next_seq()
        log.debug("cache_cleared", seq=self._cleared_at)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, key: Iterable[Any], listener: Listener) -> Callable[[], None]:
        """Call ``listener(key)`` whenever the entry at ``key`` is invalidated.

        Returns a function that removes the subscription.
        """
        key = normalize_key(key)
        self._listeners.setdefault(key, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(key, None)

        return unsubscribe

    def _notify(self, key: QueryKey) -> None:
        for listener in list(self._listeners.get(key, ())):
            try:
                listener(key)
            except Exception:
                log.warning("cache_listener_error", key=key, exc_info=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _store(self, key: QueryKey, data: Any, seq: int) -> Any:
        if seq < self._cleared_at:
            log.info("cache_write_discarded", key=key, seq=seq, cleared_at=self._cleared_at)
            return data

        current = self._entries.get(key)
        if current is not None and current.version > seq:
            log.info("cache_write_discarded", key=key, seq=seq, current=current.version)
            return current.data

        self._entries[key] = CacheEntry(
            key=key,
            data=data,
            status=FetchStatus.SUCCESS,
            fetched_at=datetime.now(UTC),
            stale=self._invalidated_at.get(key, 0) > seq,
            version=seq,
        )
        return data

    def _record_error(self, key: QueryKey, seq: int, exc: Exception) -> None:
        current = self._entries.get(key)
        if current is None or current.version > seq or seq < self._cleared_at:
            return
        self._entries[key] = current.model_copy(
            update={"status": FetchStatus.ERROR, "error": str(exc)}
        )
