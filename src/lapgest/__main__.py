"""Session check and route resolution from the command line.

    python -m lapgest /lapins /finances

Prints one JSON object per path with the auth status and the resolved page
or redirect. Logs go to stderr.
"""

from __future__ import annotations

import asyncio
import json
import sys

import structlog

from lapgest.config import Settings
from lapgest.logging_config import configure_logging
from lapgest.state import create_app_state

log = structlog.get_logger()


async def _run(settings: Settings, paths: list[str]) -> None:
    async with create_app_state(settings) as state:
        for path in paths or ["/"]:
            resolution = state.router.resolve(path)
            line = {"auth": state.auth.status.value, **resolution.model_dump(mode="json")}
            sys.stdout.write(json.dumps(line) + "\n")


def main(argv: list[str] | None = None) -> None:
    # Settings are validated before anything else runs; a bad value exits non-zero
    settings = Settings()
    configure_logging(settings.logging)
    log.info("lapgest_starting", base_url=settings.api.base_url)
    asyncio.run(_run(settings, list(sys.argv[1:] if argv is None else argv)))


if __name__ == "__main__":
    main()
