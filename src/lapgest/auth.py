"""Session-derived authentication state.

The provider starts in ``loading`` and resolves exactly once per check to
``authenticated`` or ``unauthenticated``. Any failure of the session check,
including network errors and malformed user payloads, resolves to
``unauthenticated``: the check fails closed and never raises.

A resolved state only changes through an explicit ``recheck`` (also run by
``login`` and ``logout``), or through ``refresh`` when a shared cache is given
and the session key is invalidated, e.g. after a profile update. There is no
timer.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from lapgest.errors import AuthCheckFailure, ErrorCode, RequestError
from lapgest.models.auth import AuthStatus, LoginInput, SessionState, SessionUser

if TYPE_CHECKING:
    from collections.abc import Callable

    from lapgest.cache import QueryCache
    from lapgest.config import ApiSettings
    from lapgest.http import ApiClient
    from lapgest.models.cache import QueryKey

    Listener = Callable[[SessionState], None]

log = structlog.get_logger()


class AuthStateProvider:
    def __init__(
        self,
        client: ApiClient,
        settings: ApiSettings,
        cache: QueryCache | None = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._cache = cache
        self._state = SessionState()
        self._listeners: list[Listener] = []
        self._refresh_task: asyncio.Task[SessionState] | None = None
        if cache is not None:
            cache.subscribe((settings.session_path,), self._on_session_invalidated)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def status(self) -> AuthStatus:
        return self._state.status

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(state)`` on every transition. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def check(self) -> SessionState:
        """Resolve a ``loading`` state from the session endpoint.

        A state that is already resolved is returned unchanged.
        """
        if self._state.status is not AuthStatus.LOADING:
            return self._state
        self._transition(await self._resolve())
        return self._state

    async def refresh(self) -> SessionState:
        """Re-read the session without passing through ``loading``.

        Used after a profile change so the signed-in user stays current.
        Fails closed like ``check``.
        """
        self._transition(await self._resolve())
        return self._state

    async def _resolve(self) -> SessionState:
        path = self._settings.session_path
        try:
            body = await self._client.get(path)
            user = SessionUser.model_validate(body)
        except RequestError as exc:
            failure = AuthCheckFailure(exc)
            log.info("auth_check_failed", status=failure.status, message=failure.message)
            return SessionState(status=AuthStatus.UNAUTHENTICATED)
        except ValidationError as exc:
            failure = AuthCheckFailure(
                RequestError(200, "Malformed session payload", code=ErrorCode.INVALID_RESPONSE)
            )
            log.warning(
                "auth_check_failed",
                status=failure.status,
                message=failure.message,
                errors=exc.error_count(),
            )
            return SessionState(status=AuthStatus.UNAUTHENTICATED)

        if self._cache is not None:
            # Stored so that invalidating the session key reaches _on_session_invalidated
            self._cache.set_data((path,), body)
        return SessionState(status=AuthStatus.AUTHENTICATED, user=user)

    def _on_session_invalidated(self, key: QueryKey) -> None:
        if self._state.status is not AuthStatus.AUTHENTICATED:
            return
        log.debug("auth_session_refresh", key=key)
        self._refresh_task = asyncio.get_running_loop().create_task(self.refresh())

    async def recheck(self) -> SessionState:
        """Go back to ``loading`` and run the session check again."""
        self._transition(SessionState(status=AuthStatus.LOADING))
        return await self.check()

    async def login(self, username: str, password: str) -> SessionState:
        """Open a session, then re-read it from the session endpoint.

        Raises:
            pydantic.ValidationError: empty username or password; no request is made.
            RequestError: the credentials were rejected. The state is unchanged.
        """
        credentials = LoginInput(username=username, password=password)
        await self._client.send(self._settings.login_path, "POST", credentials)
        return await self.recheck()

    async def logout(self) -> SessionState:
        """Close the session, drop cached data and re-read the session.

        Raises:
            RequestError: the server refused to close the session. The state
                and the cache are unchanged.
        """
        await self._client.send(self._settings.logout_path, "POST")
        if self._cache is not None:
            self._cache.clear()
        return await self.recheck()

    def _transition(self, new_state: SessionState) -> None:
        if new_state == self._state:
            return
        log.info("auth_state_changed", previous=self._state.status, current=new_state.status)
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)
