"""Auth-gated route resolution.

The route table in effect is a function of the auth status:

- loading: every path renders the placeholder, no matching is done.
- authenticated: the protected table; unknown paths render not-found.
- unauthenticated: the public table; unknown paths redirect to /login.

``Router`` adds deep-link replay on top of ``resolve_for``: a path asked for
before the session was known (or bounced to /login) is remembered and, once
the user is authenticated, the next visit to / or /login redirects to it.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import structlog

from lapgest.models.auth import AuthStatus
from lapgest.models.routes import Page, RouteResolution

if TYPE_CHECKING:
    from lapgest.auth import AuthStateProvider
    from lapgest.config import RouterSettings
    from lapgest.models.auth import SessionState

log = structlog.get_logger()

LOGIN_PATH = "/login"
ROOT_PATH = "/"

PROTECTED_ROUTES = MappingProxyType(
    {
        ROOT_PATH: Page.HOME,
        LOGIN_PATH: Page.LOGIN,
        "/lapins": Page.LAPINS,
        "/enclos": Page.ENCLOS,
        "/reproduction": Page.REPRODUCTION,
        "/finances": Page.FINANCES,
        "/sante": Page.SANTE,
        "/stocks": Page.STOCKS,
        "/personnel": Page.PERSONNEL,
        "/depenses": Page.DEPENSES,
        "/tresorerie": Page.TRESORERIE,
        "/rapports": Page.RAPPORTS,
        "/parametres": Page.PARAMETRES,
    }
)

PUBLIC_ROUTES = MappingProxyType(
    {
        ROOT_PATH: Page.LANDING,
        LOGIN_PATH: Page.LOGIN,
    }
)

# Paths an authenticated user lands on right after signing in
_ENTRY_PATHS = frozenset({ROOT_PATH, LOGIN_PATH})


def normalize_path(path: str) -> str:
    """Drop query string, fragment and trailing slash; ensure a leading slash."""
    path = urlsplit(path).path or ROOT_PATH
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or ROOT_PATH
    return path


def resolve_for(status: AuthStatus, path: str) -> RouteResolution:
    """Resolve ``path`` against the route table selected by ``status``."""
    path = normalize_path(path)
    if status is AuthStatus.LOADING:
        return RouteResolution(path=path, page=Page.PLACEHOLDER)
    if status is AuthStatus.AUTHENTICATED:
        return RouteResolution(path=path, page=PROTECTED_ROUTES.get(path, Page.NOT_FOUND))

    page = PUBLIC_ROUTES.get(path)
    if page is None:
        return RouteResolution(path=path, redirect=LOGIN_PATH)
    return RouteResolution(path=path, page=page)


class Router:
    def __init__(self, auth: AuthStateProvider, settings: RouterSettings | None = None) -> None:
        self._auth = auth
        self._replay = settings.replay_deep_links if settings is not None else True
        self._pending_path: str | None = None
        self._last_status = auth.status
        auth.subscribe(self._on_auth_change)

    @property
    def pending_path(self) -> str | None:
        return self._pending_path

    def resolve(self, path: str) -> RouteResolution:
        status = self._auth.status
        resolution = resolve_for(status, path)
        if not self._replay:
            return resolution

        if status is AuthStatus.LOADING:
            if resolution.path not in _ENTRY_PATHS:
                self._pending_path = resolution.path
        elif status is AuthStatus.UNAUTHENTICATED:
            if resolution.is_redirect:
                log.debug("route_redirect", path=resolution.path, target=resolution.redirect)
                self._pending_path = resolution.path
        elif self._pending_path is not None:
            pending, self._pending_path = self._pending_path, None
            if resolution.path in _ENTRY_PATHS and pending in PROTECTED_ROUTES:
                log.info("deep_link_replayed", path=pending)
                return RouteResolution(path=resolution.path, redirect=pending)
        return resolution

    def _on_auth_change(self, state: SessionState) -> None:
        # A closed session must not replay a path recorded for the previous user
        if self._last_status is AuthStatus.AUTHENTICATED:
            self._pending_path = None
        self._last_status = state.status
