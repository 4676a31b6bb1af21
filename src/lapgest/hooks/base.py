"""Query and mutation primitives shared by every resource hook.

A ``Query`` reads through the ``QueryCache``; a ``Mutation`` performs one
request and, only after a successful response, invalidates the keys its
``MutationDescriptor`` declares. Both expose the same small surface for
every resource: ``data``/``is_loading``/``error`` and
``mutate``/``is_pending``/``error``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import structlog
from pydantic import ValidationError

from lapgest.cache import normalize_key
from lapgest.errors import ErrorCode, RequestError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Sequence

    from lapgest.cache import QueryCache
    from lapgest.http import ApiClient, Method
    from lapgest.models.cache import QueryKey

log = structlog.get_logger()

T = TypeVar("T")
V = TypeVar("V")


class Query(Generic[T]):
    """Read side of a resource: cached data plus loading and error flags.

    The payload itself lives in the cache; the query only remembers whether
    its own load is in flight and the last ``RequestError`` it saw.
    """

    def __init__(
        self,
        cache: QueryCache,
        key: Iterable[Any],
        loader: Callable[[], Awaitable[Any]],
        *,
        enabled: bool = True,
        parse: Callable[[Any], T] | None = None,
    ) -> None:
        self._cache = cache
        self.key: QueryKey = normalize_key(key)
        self._loader = loader
        self._parse = parse
        self.enabled = enabled
        self.error: RequestError | None = None
        self._loading = False
        self._unsubscribe: Callable[[], None] | None = None
        self._refetch_task: asyncio.Task[T | None] | None = None

    @property
    def data(self) -> T | None:
        """Parsed cached payload, or ``None`` when absent or of the wrong shape."""
        entry = self._cache.read(self.key)
        if entry is None or entry.data is None:
            return None
        if self._parse is None:
            return entry.data
        try:
            return self._parse(entry.data)
        except ValidationError:
            return None

    @property
    def is_loading(self) -> bool:
        return self._loading

    async def load(self) -> T | None:
        """Fetch through the cache.

        A ``RequestError``, including a payload that does not match the
        expected shape, is kept on ``error`` instead of being raised.
        """
        if not self.enabled:
            return None
        self._loading = True
        try:
            payload = await self._cache.fetch(self.key, self._loader)
            data = self._decode(payload)
        except RequestError as exc:
            self.error = exc
            return None
        finally:
            self._loading = False
        self.error = None
        return data

    def _decode(self, payload: Any) -> T | None:
        if payload is None or self._parse is None:
            return payload
        try:
            return self._parse(payload)
        except ValidationError as exc:
            log.warning("query_invalid_payload", key=self.key, errors=exc.error_count())
            raise RequestError(
                200, f"Unexpected payload for {self.key[0]}", code=ErrorCode.INVALID_RESPONSE
            ) from exc

    async def refetch(self) -> T | None:
        """Force a new request for this exact key."""
        self._cache.invalidate(self.key, exact=True)
        return await self.load()

    def observe(self) -> Callable[[], None]:
        """Reload in the background whenever this key is invalidated.

        Must be called from a running event loop. Returns the function that
        stops observing.
        """
        if self._unsubscribe is None:
            self._unsubscribe = self._cache.subscribe(self.key, self._on_invalidated)
        return self.close

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_invalidated(self, key: QueryKey) -> None:
        self._refetch_task = asyncio.get_running_loop().create_task(self.load())
        self._refetch_task.add_done_callback(self._log_refetch_failure)

    def _log_refetch_failure(self, task: asyncio.Task[T | None]) -> None:
        if not task.cancelled() and task.exception() is not None:
            log.error("query_refetch_failed", key=self.key, exc_info=task.exception())


@dataclass(frozen=True)
class MutationDescriptor(Generic[V]):
    """A write operation and the cache keys it invalidates on success.

    ``path``, ``payload`` and ``invalidates`` may be callables taking the
    mutation variables. Without a ``payload`` builder the variables are sent
    as the body, except for DELETE which sends none.
    """

    path: str | Callable[[V], str]
    method: Method
    payload: Callable[[V], Any] | None = None
    invalidates: Sequence[Iterable[Any]] | Callable[[V], Sequence[Iterable[Any]]] = ()

    def build_path(self, variables: V) -> str:
        return self.path(variables) if callable(self.path) else self.path

    def build_payload(self, variables: V) -> Any:
        if self.payload is not None:
            return self.payload(variables)
        if self.method == "DELETE":
            return None
        return variables

    def keys_to_invalidate(self, variables: V) -> list[QueryKey]:
        keys = self.invalidates(variables) if callable(self.invalidates) else self.invalidates
        return [normalize_key(key) for key in keys]


class Mutation(Generic[V, T]):
    """Write side of a resource: one request, then invalidation on success."""

    def __init__(
        self,
        client: ApiClient,
        cache: QueryCache,
        descriptor: MutationDescriptor[V],
        *,
        parse: Callable[[Any], T] | None = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self.descriptor = descriptor
        self._parse = parse
        self.data: T | None = None
        self.error: RequestError | None = None
        self._pending = False

    @property
    def is_pending(self) -> bool:
        return self._pending

    async def mutate(self, variables: V) -> T | None:
        """Run the request; invalidate the declared keys once it succeeds.

        Raises:
            RequestError: the request failed, and the cache is left untouched;
                or the response did not match the expected shape, after the
                declared keys were already invalidated.
        """
        path = self.descriptor.build_path(variables)
        self._pending = True
        self.error = None
        try:
            result = await self._client.send(
                path, self.descriptor.method, self.descriptor.build_payload(variables)
            )
        except RequestError as exc:
            self.error = exc
            log.warning(
                "mutation_failed",
                method=self.descriptor.method,
                path=path,
                status=exc.status,
                message=exc.message,
            )
            raise
        finally:
            self._pending = False

        for key in self.descriptor.keys_to_invalidate(variables):
            self._cache.invalidate(key)

        if self._parse is not None and result is not None:
            try:
                result = self._parse(result)
            except ValidationError as exc:
                # The write went through, so the invalidation above stands
                self.error = RequestError(
                    200, f"Unexpected response from {path}", code=ErrorCode.INVALID_RESPONSE
                )
                log.warning(
                    "mutation_failed",
                    method=self.descriptor.method,
                    path=path,
                    status=self.error.status,
                    message=self.error.message,
                    errors=exc.error_count(),
                )
                raise self.error from exc
        self.data = result
        return self.data

    def reset(self) -> None:
        self.data = None
        self.error = None
