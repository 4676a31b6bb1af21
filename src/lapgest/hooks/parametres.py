"""Settings page: the signed-in user's profile and server maintenance actions.

A profile update invalidates the session key, so an ``AuthStateProvider``
sharing the cache re-reads the signed-in user.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from lapgest.hooks.base import Mutation, MutationDescriptor, Query
from lapgest.models.auth import SessionUser
from lapgest.models.resources import PasswordChange, ProfileInput, SystemStats

if TYPE_CHECKING:
    from lapgest.cache import QueryCache
    from lapgest.http import ApiClient

PROFILE_PATH = "/api/auth/profile"
SYSTEM_STATS_PATH = "/api/system/stats"

CHANGE_PASSWORD = MutationDescriptor[PasswordChange](path="/api/auth/password", method="PUT")

EXPORT_DATA = MutationDescriptor[str](
    path="/api/system/export",
    method="POST",
    payload=lambda export_format: {"format": export_format},
)

CLEAR_SERVER_CACHE = MutationDescriptor[None](
    path="/api/system/clear-cache",
    method="POST",
    invalidates=[(SYSTEM_STATS_PATH,)],
)

OPTIMIZE_DATABASE = MutationDescriptor[None](
    path="/api/system/optimize-db",
    method="POST",
    invalidates=[(SYSTEM_STATS_PATH,)],
)


class ParametresHooks:
    def __init__(
        self, client: ApiClient, cache: QueryCache, session_path: str = "/api/auth/user"
    ) -> None:
        self._client = client
        self._cache = cache
        self._session_path = session_path

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def profile(self) -> Query[SessionUser]:
        async def load() -> Any:
            return await self._client.get(PROFILE_PATH)

        return Query(self._cache, (PROFILE_PATH,), load, parse=SessionUser.model_validate)

    def update_profile(self) -> Mutation[ProfileInput, SessionUser]:
        descriptor = MutationDescriptor[ProfileInput](
            path=PROFILE_PATH,
            method="PUT",
            invalidates=[(self._session_path,), (PROFILE_PATH,)],
        )
        return Mutation(self._client, self._cache, descriptor, parse=SessionUser.model_validate)

    def change_password(self) -> Mutation[PasswordChange, dict[str, Any]]:
        """Rejected with a 400 ``RequestError`` when the current password is wrong."""
        return Mutation(self._client, self._cache, CHANGE_PASSWORD)

    # ------------------------------------------------------------------
    # System
    # ------------------------------------------------------------------

    def system_stats(self) -> Query[SystemStats]:
        async def load() -> Any:
            return await self._client.get(SYSTEM_STATS_PATH)

        return Query(
            self._cache, (SYSTEM_STATS_PATH,), load, parse=SystemStats.model_validate
        )

    def export_data(self) -> Mutation[str, dict[str, Any]]:
        """Full data dump; the variables are the export format, e.g. ``"json"``."""
        return Mutation(self._client, self._cache, EXPORT_DATA)

    def clear_server_cache(self) -> Mutation[None, dict[str, Any]]:
        return Mutation(self._client, self._cache, CLEAR_SERVER_CACHE)

    def optimize_database(self) -> Mutation[None, dict[str, Any]]:
        return Mutation(self._client, self._cache, OPTIMIZE_DATABASE)
