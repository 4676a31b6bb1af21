"""Unit tests for lapgest.auth."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest
import respx
from pydantic import ValidationError

from lapgest.auth import AuthStateProvider
from lapgest.cache import QueryCache
from lapgest.config import Settings
from lapgest.errors import RequestError
from lapgest.http import ApiClient
from lapgest.models.auth import AuthStatus, SessionState


@pytest.fixture()
def auth(api: ApiClient, settings: Settings, cache: QueryCache) -> AuthStateProvider:
    return AuthStateProvider(api, settings.api, cache)


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


class TestCheck:
    async def test_starts_loading(self, auth: AuthStateProvider) -> None:
        assert auth.status is AuthStatus.LOADING
        assert auth.state.is_loading
        assert auth.state.user is None

    async def test_valid_session_authenticates(
        self, auth: AuthStateProvider, api_mock: respx.MockRouter, user_payload: dict[str, str]
    ) -> None:
        api_mock.get("/api/auth/user").mock(
            return_value=httpx.Response(200, json=user_payload)
        )
        state = await auth.check()
        assert state.is_authenticated
        assert state.user is not None
        assert state.user.username == "eleveur"
        assert state.user.first_name == "Awa"

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(401, json={"message": "Unauthorized"}),
            httpx.Response(403),
            httpx.Response(500, text="boom"),
        ],
    )
    async def test_error_status_unauthenticates(
        self, auth: AuthStateProvider, api_mock: respx.MockRouter, response: httpx.Response
    ) -> None:
        api_mock.get("/api/auth/user").mock(return_value=response)
        state = await auth.check()
        assert state.status is AuthStatus.UNAUTHENTICATED
        assert state.user is None

    async def test_network_error_unauthenticates(
        self, auth: AuthStateProvider, api_mock: respx.MockRouter
    ) -> None:
        api_mock.get("/api/auth/user").mock(side_effect=httpx.ConnectError("refused"))
        assert (await auth.check()).status is AuthStatus.UNAUTHENTICATED

    @pytest.mark.parametrize(
        "failure",
        [
            httpx.DecodingError("Error -3 while decompressing data"),
            httpx.TooManyRedirects("Exceeded maximum allowed redirects."),
        ],
    )
    async def test_other_request_failures_unauthenticate(
        self, auth: AuthStateProvider, api_mock: respx.MockRouter, failure: httpx.RequestError
    ) -> None:
        api_mock.get("/api/auth/user").mock(side_effect=failure)
        state = await auth.check()
        assert state.status is AuthStatus.UNAUTHENTICATED
        assert state.user is None

    @pytest.mark.parametrize("body", [{"unexpected": True}, [], "html"])
    async def test_malformed_payload_unauthenticates(
        self, auth: AuthStateProvider, api_mock: respx.MockRouter, body: object
    ) -> None:
        api_mock.get("/api/auth/user").mock(return_value=httpx.Response(200, json=body))
        assert (await auth.check()).status is AuthStatus.UNAUTHENTICATED

    async def test_empty_body_unauthenticates(
        self, auth: AuthStateProvider, api_mock: respx.MockRouter
    ) -> None:
        api_mock.get("/api/auth/user").mock(return_value=httpx.Response(204))
        assert (await auth.check()).status is AuthStatus.UNAUTHENTICATED

    async def test_resolved_state_not_rechecked(
        self, auth: AuthStateProvider, api_mock: respx.MockRouter
    ) -> None:
        route = api_mock.get("/api/auth/user").mock(return_value=httpx.Response(401))
        await auth.check()
        await auth.check()
        assert route.call_count == 1

    async def test_recheck_goes_through_loading(
        self, auth: AuthStateProvider, api_mock: respx.MockRouter, user_payload: dict[str, str]
    ) -> None:
        api_mock.get("/api/auth/user").mock(
            side_effect=[httpx.Response(401), httpx.Response(200, json=user_payload)]
        )
        seen: list[AuthStatus] = []
        auth.subscribe(lambda state: seen.append(state.status))

        await auth.check()
        await auth.recheck()

        assert seen == [AuthStatus.UNAUTHENTICATED, AuthStatus.LOADING, AuthStatus.AUTHENTICATED]


# ---------------------------------------------------------------------------
# login / logout
# ---------------------------------------------------------------------------


class TestLogin:
    async def test_success_authenticates(
        self, auth: AuthStateProvider, api_mock: respx.MockRouter, user_payload: dict[str, str]
    ) -> None:
        login = api_mock.post("/api/auth/login").mock(
            return_value=httpx.Response(
                200, json=user_payload, headers={"set-cookie": "connect.sid=s1"}
            )
        )
        session = api_mock.get("/api/auth/user").mock(
            side_effect=[httpx.Response(401), httpx.Response(200, json=user_payload)]
        )
        await auth.check()

        state = await auth.login("eleveur", "secret")

        assert state.is_authenticated
        assert json.loads(login.calls.last.request.read()) == {
            "username": "eleveur",
            "password": "secret",
        }
        # The session cookie from the login response is sent on the recheck
        assert session.calls.last.request.headers["cookie"] == "connect.sid=s1"

    async def test_rejected_credentials_raise(
        self, auth: AuthStateProvider, api_mock: respx.MockRouter
    ) -> None:
        api_mock.post("/api/auth/login").mock(
            return_value=httpx.Response(401, json={"message": "Identifiants invalides"})
        )
        api_mock.get("/api/auth/user").mock(return_value=httpx.Response(401))
        await auth.check()

        with pytest.raises(RequestError) as exc_info:
            await auth.login("eleveur", "wrong")

        assert exc_info.value.message == "Identifiants invalides"
        assert auth.status is AuthStatus.UNAUTHENTICATED

    async def test_empty_credentials_make_no_request(self, auth: AuthStateProvider) -> None:
        with pytest.raises(ValidationError):
            await auth.login("", "secret")
        assert auth.status is AuthStatus.LOADING


class TestLogout:
    async def test_clears_cache_and_unauthenticates(
        self,
        auth: AuthStateProvider,
        cache: QueryCache,
        api_mock: respx.MockRouter,
        user_payload: dict[str, str],
    ) -> None:
        api_mock.get("/api/auth/user").mock(
            side_effect=[httpx.Response(200, json=user_payload), httpx.Response(401)]
        )
        api_mock.post("/api/auth/logout").mock(return_value=httpx.Response(204))
        await auth.check()
        cache.set_data(("/api/lapins",), [])

        state = await auth.logout()

        assert state.status is AuthStatus.UNAUTHENTICATED
        assert cache.keys() == []

    async def test_failed_logout_keeps_session_and_cache(
        self,
        auth: AuthStateProvider,
        cache: QueryCache,
        api_mock: respx.MockRouter,
        user_payload: dict[str, str],
    ) -> None:
        api_mock.get("/api/auth/user").mock(
            return_value=httpx.Response(200, json=user_payload)
        )
        api_mock.post("/api/auth/logout").mock(return_value=httpx.Response(500))
        await auth.check()
        cache.set_data(("/api/lapins",), [])

        with pytest.raises(RequestError):
            await auth.logout()

        assert auth.status is AuthStatus.AUTHENTICATED
        assert ("/api/lapins",) in cache.keys()

    async def test_list_loading_across_logout_is_not_kept(
        self,
        auth: AuthStateProvider,
        cache: QueryCache,
        api_mock: respx.MockRouter,
        user_payload: dict[str, str],
    ) -> None:
        api_mock.get("/api/auth/user").mock(
            side_effect=[httpx.Response(200, json=user_payload), httpx.Response(401)]
        )
        api_mock.post("/api/auth/logout").mock(return_value=httpx.Response(204))
        await auth.check()
        started = asyncio.Event()
        release = asyncio.Event()

        async def previous_user_list() -> list[str]:
            started.set()
            await release.wait()
            return ["l1"]

        loading = asyncio.create_task(cache.fetch(("/api/lapins",), previous_user_list))
        await started.wait()
        await auth.logout()
        release.set()
        await loading

        assert auth.status is AuthStatus.UNAUTHENTICATED
        assert cache.read(("/api/lapins",)) is None
        assert cache.keys() == []


# ---------------------------------------------------------------------------
# refresh
# ---------------------------------------------------------------------------


class TestRefresh:
    async def test_session_body_kept_in_cache(
        self,
        auth: AuthStateProvider,
        cache: QueryCache,
        api_mock: respx.MockRouter,
        user_payload: dict[str, str],
    ) -> None:
        api_mock.get("/api/auth/user").mock(return_value=httpx.Response(200, json=user_payload))
        await auth.check()
        assert cache.read(("/api/auth/user",)).data == user_payload  # type: ignore[union-attr]

    async def test_invalidating_session_key_rereads_user(
        self,
        auth: AuthStateProvider,
        cache: QueryCache,
        api_mock: respx.MockRouter,
        user_payload: dict[str, str],
    ) -> None:
        renamed = {**user_payload, "firstName": "Camille"}
        route = api_mock.get("/api/auth/user").mock(
            side_effect=[
                httpx.Response(200, json=user_payload),
                httpx.Response(200, json=renamed),
            ]
        )
        await auth.check()
        seen: list[AuthStatus] = []
        auth.subscribe(lambda state: seen.append(state.status))

        cache.invalidate(("/api/auth/user",))
        await auth._refresh_task  # type: ignore[misc]

        assert route.call_count == 2
        assert auth.state.user is not None
        assert auth.state.user.first_name == "Camille"
        # No pass through loading, so guarded pages stay mounted
        assert seen == [AuthStatus.AUTHENTICATED]

    async def test_signed_out_session_not_refreshed(
        self, auth: AuthStateProvider, cache: QueryCache, api_mock: respx.MockRouter
    ) -> None:
        route = api_mock.get("/api/auth/user").mock(return_value=httpx.Response(401))
        await auth.check()
        cache.set_data(("/api/auth/user",), {})
        cache.invalidate(("/api/auth/user",))
        assert auth._refresh_task is None
        assert route.call_count == 1

    async def test_refresh_fails_closed(
        self, auth: AuthStateProvider, api_mock: respx.MockRouter, user_payload: dict[str, str]
    ) -> None:
        api_mock.get("/api/auth/user").mock(
            side_effect=[
                httpx.Response(200, json=user_payload),
                httpx.DecodingError("Error -3 while decompressing data"),
            ]
        )
        await auth.check()
        state = await auth.refresh()
        assert state.status is AuthStatus.UNAUTHENTICATED


# ---------------------------------------------------------------------------
# subscribe
# ---------------------------------------------------------------------------


class TestSubscribe:
    async def test_unsubscribe_stops_notifications(
        self, auth: AuthStateProvider, api_mock: respx.MockRouter
    ) -> None:
        api_mock.get("/api/auth/user").mock(return_value=httpx.Response(401))
        seen: list[SessionState] = []
        unsubscribe = auth.subscribe(seen.append)
        unsubscribe()
        await auth.check()
        assert seen == []

    async def test_no_notification_without_change(
        self, auth: AuthStateProvider, api_mock: respx.MockRouter
    ) -> None:
        api_mock.get("/api/auth/user").mock(return_value=httpx.Response(401))
        await auth.check()
        seen: list[SessionState] = []
        auth.subscribe(seen.append)
        await auth.check()
        assert seen == []
