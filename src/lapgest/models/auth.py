from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class AuthStatus(StrEnum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class SessionUser(BaseModel):
    """User record returned by the session introspection endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    username: str
    email: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    role: str | None = "employee"
    profile_image_url: str | None = Field(default=None, alias="profileImageUrl")


class SessionState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: AuthStatus = AuthStatus.LOADING
    user: SessionUser | None = None

    @property
    def is_loading(self) -> bool:
        return self.status is AuthStatus.LOADING

    @property
    def is_authenticated(self) -> bool:
        return self.status is AuthStatus.AUTHENTICATED


class LoginInput(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
