"""Application wiring: one of each service, shared by reference."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from lapgest.auth import AuthStateProvider
from lapgest.cache import QueryCache
from lapgest.config import Settings
from lapgest.hooks import FarmResources, GenealogyHooks, ParametresHooks, PersonnelHooks
from lapgest.http import ApiClient, build_http_client
from lapgest.router import Router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import httpx

log = structlog.get_logger()


@dataclass
class AppState:
    settings: Settings
    http_client: httpx.AsyncClient
    api: ApiClient
    cache: QueryCache
    auth: AuthStateProvider
    router: Router
    resources: FarmResources = field(init=False)
    genealogy: GenealogyHooks = field(init=False)
    personnel: PersonnelHooks = field(init=False)
    parametres: ParametresHooks = field(init=False)

    def __post_init__(self) -> None:
        self.resources = FarmResources(self.api, self.cache)
        self.genealogy = GenealogyHooks(self.api, self.cache)
        self.personnel = PersonnelHooks(self.api, self.cache)
        self.parametres = ParametresHooks(self.api, self.cache, self.settings.api.session_path)


def build_app_state(settings: Settings, http_client: httpx.AsyncClient) -> AppState:
    """Wire the services around an existing HTTP client. No I/O."""
    api = ApiClient(http_client)
    cache = QueryCache()
    auth = AuthStateProvider(api, settings.api, cache)
    router = Router(auth, settings.router)
    return AppState(
        settings=settings,
        http_client=http_client,
        api=api,
        cache=cache,
        auth=auth,
        router=router,
    )


@asynccontextmanager
async def create_app_state(settings: Settings | None = None) -> AsyncIterator[AppState]:
    """Build the services, run the initial session check, close the client on exit."""
    settings = settings or Settings()
    async with build_http_client(settings.api) as client:
        state = build_app_state(settings, client)
        await state.auth.check()
        log.info("app_state_ready", base_url=settings.api.base_url, auth=state.auth.status)
        yield state
