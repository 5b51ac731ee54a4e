"""Runner standalone del Retry Sweeper.

Útil para drenar pendientes sin levantar el servidor HTTP (p.ej. tras una
caída larga del colector). No correr en paralelo con un relay que tenga su
propio sweeper sobre la misma BD: el guard de no-solapamiento es por proceso.

Ejecutar:
    relay-sweep --once
"""

from __future__ import annotations

import argparse
import logging
import time

from common.config import get_settings
from relay_api.services import build_client, build_store
from relay_api.sweeper import RetrySweeper, SweeperConfig

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    p = argparse.ArgumentParser(description="Retry sweeper de lecturas no entregadas")
    p.add_argument("--interval-seconds", type=float, default=settings.retry_interval_seconds)
    p.add_argument("--once", action="store_true", help="run a single sweep and exit")
    args = p.parse_args()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    store = build_store(settings)
    client = build_client(settings)
    sweeper = RetrySweeper(store, client, SweeperConfig(interval_seconds=args.interval_seconds))
    logger.info("Retry sweeper started: collector=%s interval=%.1fs", settings.collector_url, args.interval_seconds)

    try:
        while True:
            try:
                result = sweeper.sweep_once()
                if result is not None:
                    logger.info("Pasada: pending=%d delivered=%d failed=%d", result.pending, result.delivered, result.failed)
                if args.once:
                    return
                time.sleep(args.interval_seconds)
            except Exception as e:
                logger.error("Error en iteración: %s", e)
                if args.once:
                    raise
                logger.info("Continuando con siguiente iteración...")
                time.sleep(args.interval_seconds)
    except KeyboardInterrupt:
        logger.info("Interrumpido por el usuario")
    finally:
        store.close()


if __name__ == "__main__":
    main()
