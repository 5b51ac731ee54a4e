"""CLI entry point del relay HTTP."""

from __future__ import annotations

import argparse
import dataclasses
import logging

import uvicorn

from common.config import get_settings

from .main import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    p = argparse.ArgumentParser(description="Weight relay: store-and-forward de lecturas de peso")
    p.add_argument("--host", default=settings.host)
    p.add_argument("--port", type=int, default=settings.port)
    p.add_argument("--db-path", default=settings.db_path)
    p.add_argument("--log-level", default=settings.log_level)
    args = p.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    settings = dataclasses.replace(
        settings,
        host=args.host,
        port=args.port,
        db_path=args.db_path,
        log_level=args.log_level.upper(),
    )
    logger.info("Server running on %s:%d db=%s", settings.host, settings.port, settings.db_path)

    # uvicorn atiende SIGINT/SIGTERM y dispara el shutdown del lifespan,
    # que detiene el sweeper y cierra la BD antes de salir.
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
