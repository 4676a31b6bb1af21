"""Shared fixtures: settings pointing at a fake API host, a respx router and an ApiClient."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import respx

from lapgest.cache import QueryCache
from lapgest.config import ApiSettings, Settings
from lapgest.http import ApiClient, build_http_client

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

BASE_URL = "http://farm.test"

USER = {
    "id": "u-1",
    "username": "eleveur",
    "email": "eleveur@farm.test",
    "firstName": "Awa",
    "lastName": "Diallo",
    "role": "admin",
    "profileImageUrl": "",
}


@pytest.fixture()
def settings() -> Settings:
    return Settings(api=ApiSettings(base_url=BASE_URL))


@pytest.fixture()
def api_mock() -> Iterator[respx.MockRouter]:
    """respx router for the fake API. Unmatched requests fail the test."""
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as mock:
        yield mock


@pytest.fixture()
async def api(settings: Settings, api_mock: respx.MockRouter) -> AsyncIterator[ApiClient]:
    async with build_http_client(settings.api) as client:
        yield ApiClient(client)


@pytest.fixture()
def cache() -> QueryCache:
    return QueryCache()


@pytest.fixture()
def user_payload() -> dict[str, str]:
    """Body of the session endpoint for a signed-in user."""
    return dict(USER)
