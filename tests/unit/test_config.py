"""Unit tests for configuration loading and validation."""

from __future__ import annotations

import platformdirs
import pytest
from pydantic import ValidationError

from lapgest.config import _DEFAULT_CONFIG_DIR, ApiSettings, RouterSettings, Settings


class TestDefaults:
    def test_config_dir_matches_platformdirs(self) -> None:
        assert platformdirs.user_config_dir("lapgest") == _DEFAULT_CONFIG_DIR

    def test_api_defaults(self) -> None:
        settings = ApiSettings()
        assert settings.base_url == "http://localhost:5000"
        assert settings.session_path == "/api/auth/user"
        assert settings.login_path == "/api/auth/login"
        assert settings.logout_path == "/api/auth/logout"

    def test_deep_link_replay_on_by_default(self) -> None:
        assert RouterSettings().replay_deep_links is True

    def test_base_url_trailing_slash_stripped(self) -> None:
        assert ApiSettings(base_url="https://farm.example.com/").base_url == (
            "https://farm.example.com"
        )


class TestEnvironment:
    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LAPGEST__API__BASE_URL", "https://ferme.example.org")
        monkeypatch.setenv("LAPGEST__LOGGING__LEVEL", "DEBUG")
        settings = Settings()
        assert settings.api.base_url == "https://ferme.example.org"
        assert settings.logging.level == "DEBUG"

    def test_init_args_beat_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LAPGEST__API__BASE_URL", "https://ferme.example.org")
        settings = Settings(api=ApiSettings(base_url="http://farm.test"))
        assert settings.api.base_url == "http://farm.test"


class TestConfigValidation:
    def test_non_http_base_url_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ApiSettings(base_url="ftp://farm.test")

    def test_relative_session_path_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ApiSettings(session_path="api/auth/user")

    def test_unknown_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(logging={"level": "TRACE"})  # type: ignore[arg-type]

    def test_unknown_top_level_field_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            Settings(completely_unknown_field="oops")  # type: ignore[call-arg]

    def test_unknown_nested_field_raises_validation_error(self) -> None:
        """A typo like 'base_ulr' is caught instead of silently using the default."""
        with pytest.raises(ValidationError):
            ApiSettings(base_ulr="http://farm.test")  # type: ignore[call-arg]
