"""Integration test fixtures.

Provides a fully wired AppState on top of the respx-mocked farm API, and a
clean environment for running ``python -m lapgest`` in a subprocess.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from lapgest.http import build_http_client
from lapgest.state import AppState, build_app_state

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    import respx

    from lapgest.config import Settings


@pytest.fixture()
async def app_state(settings: Settings, api_mock: respx.MockRouter) -> AsyncIterator[AppState]:
    """AppState wired around a client whose requests hit ``api_mock``."""
    async with build_http_client(settings.api) as client:
        yield build_app_state(settings, client)


@pytest.fixture()
def subprocess_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Environment without LAPGEST__ overrides, run from an empty directory."""
    monkeypatch.chdir(tmp_path)
    env = {
        key: value
        for key, value in os.environ.items()
        if not key.startswith("LAPGEST__") and not key.lower().endswith("_proxy")
    }
    env["XDG_CONFIG_HOME"] = str(tmp_path / "config")
    return env
