"""Run the Factions server: ``python -m factions``."""
from __future__ import annotations

import logging
import math

import uvicorn

from .config import Settings
from .engine import GameEngine
from .server import GameServer, create_app


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    engine = GameEngine(settings)
    server = GameServer(
        uvicorn.Config(
            create_app(settings, engine),
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
            # uvicorn forces the exit once this many seconds pass after SIGINT/SIGTERM.
            timeout_graceful_shutdown=max(1, math.ceil(settings.shutdown_timeout_s)),
        ),
        engine,
    )
    logging.getLogger(__name__).info(
        "Server listening on port %d. Access the game at: http://localhost:%d", settings.port, settings.port
    )
    server.run()


if __name__ == "__main__":
    main()
