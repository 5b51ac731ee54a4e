"""Retry Sweeper: reintenta periódicamente las lecturas normales no entregadas.

- Corre cada interval_seconds (por defecto 5 min) en un hilo daemon.
- Nunca hay dos pasadas simultáneas: si un tick llega con una pasada en curso,
  se omite.
- Un fallo en un registro no aborta la pasada; el registro queda para la próxima.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import asdict
from typing import Optional

from ..delivery import DeliveryClient
from ..measurements import MeasurementStore
from .sweeper_models import SweeperConfig, SweeperStats, SweepResult

logger = logging.getLogger(__name__)


class RetrySweeper:
    """Sweeper de reintentos sobre el measurement store.

    Uso:
        sweeper = RetrySweeper(store, client, SweeperConfig(interval_seconds=300))
        sweeper.start()
        ...
        sweeper.stop()
    """

    def __init__(
        self,
        store: MeasurementStore,
        client: DeliveryClient,
        config: Optional[SweeperConfig] = None,
    ) -> None:
        self._store = store
        self._client = client
        self._config = config or SweeperConfig.from_env()

        self._sweep_lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._stats = SweeperStats()

        logger.info("[SWEEP] RetrySweeper initialized: interval=%.1fs", self._config.interval_seconds)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Inicia el hilo en background."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            daemon=True,
            name="retry-sweeper",
        )
        self._thread.start()
        logger.info("[SWEEP] RetrySweeper started")

    def stop(self) -> None:
        """Detiene el sweeper; la pasada en curso termina el registro actual."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=self._config.stop_timeout_seconds)
            if self._thread.is_alive():
                logger.warning("[SWEEP] El hilo no terminó en %.1fs", self._config.stop_timeout_seconds)
            self._thread = None
        logger.info("[SWEEP] RetrySweeper stopped")

    def _run_loop(self) -> None:
        # wait() devuelve True cuando se pide parar.
        while not self._stop_event.wait(self._config.interval_seconds):
            try:
                self.sweep_once()
            except Exception as e:
                logger.exception("[SWEEP] Error en la pasada: %s", e)

    def sweep_once(self) -> Optional[SweepResult]:
        """Ejecuta una pasada.

        Returns:
            SweepResult, o None si había otra pasada en curso (tick omitido)
        """
        if not self._sweep_lock.acquire(blocking=False):
            with self._stats_lock:
                self._stats.skipped += 1
            logger.info("[SWEEP] Pasada en curso, tick omitido")
            return None

        try:
            return self._sweep()
        finally:
            self._sweep_lock.release()

    def _sweep(self) -> SweepResult:
        result = SweepResult()
        target_weight = self._store.get_threshold()
        pending = self._store.list_undelivered()
        result.pending = len(pending)

        for record in pending:
            if self._stop_event.is_set():
                result.interrupted = True
                break
            try:
                if self._client.deliver(record.to_delivery_payload(target_weight)):
                    self._store.mark_sent(record.id)
                    result.delivered += 1
                else:
                    result.failed += 1
            except Exception as e:
                result.errors += 1
                logger.exception("[SWEEP] Error reintentando id=%s: %s", record.id, e)

        with self._stats_lock:
            self._stats.runs += 1
            self._stats.delivered += result.delivered
            self._stats.failed += result.failed
            self._stats.errors += result.errors
            self._stats.last_run_at = time.time()
            self._stats.last_batch_size = result.pending

        if result.pending:
            logger.info(
                "[SWEEP] Pasada completada: pending=%d delivered=%d failed=%d errors=%d",
                result.pending,
                result.delivered,
                result.failed,
                result.errors,
            )
        return result

    def get_stats(self) -> dict:
        with self._stats_lock:
            stats = asdict(self._stats)
        stats["running"] = self.is_running
        stats["interval_seconds"] = self._config.interval_seconds
        return stats
