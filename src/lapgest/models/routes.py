from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, model_validator


class Page(StrEnum):
    PLACEHOLDER = "placeholder"
    LANDING = "landing"
    LOGIN = "login"
    HOME = "home"
    LAPINS = "lapins"
    ENCLOS = "enclos"
    REPRODUCTION = "reproduction"
    FINANCES = "finances"
    SANTE = "sante"
    STOCKS = "stocks"
    PERSONNEL = "personnel"
    DEPENSES = "depenses"
    TRESORERIE = "tresorerie"
    RAPPORTS = "rapports"
    PARAMETRES = "parametres"
    NOT_FOUND = "not_found"


class RouteResolution(BaseModel):
    """Outcome of resolving a path: a page to render or a path to redirect to."""

    model_config = ConfigDict(frozen=True)

    path: str
    page: Page | None = None
    redirect: str | None = None

    @model_validator(mode="after")
    def check_target(self) -> RouteResolution:
        if (self.page is None) == (self.redirect is None):
            raise ValueError("exactly one of page or redirect must be set")
        return self

    @property
    def is_redirect(self) -> bool:
        return self.redirect is not None
