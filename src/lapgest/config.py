"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (LAPGEST__API__BASE_URL=https://farm.example.com)
  2. lapgest.yaml           (searched in cwd, then the platform config dir)
  3. Hardcoded defaults

The config file is optional: every field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_CONFIG_DIR = platformdirs.user_config_dir("lapgest")


def _find_config_file() -> str | None:
    """Return the path of the first lapgest.yaml found, or None."""
    candidates = [
        Path("lapgest.yaml"),
        Path(_DEFAULT_CONFIG_DIR) / "lapgest.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ApiSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base_url: str = "http://localhost:5000"
    session_path: str = "/api/auth/user"
    login_path: str = "/api/auth/login"
    logout_path: str = "/api/auth/logout"
    verify_tls: bool = True

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must use http or https scheme")
        return v

    @field_validator("session_path", "login_path", "logout_path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("API paths must start with '/'")
        return v


class RouterSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Remember a path requested before auth resolved and redirect to it afterwards
    replay_deep_links: bool = True


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: LAPGEST__LOGGING__LEVEL=DEBUG
        env_prefix="LAPGEST__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    api: ApiSettings = ApiSettings()
    router: RouterSettings = RouterSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
