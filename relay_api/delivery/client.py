"""Cliente de entrega hacia el colector aguas abajo.

Contrato: deliver(payload) -> bool
- True solo si el colector respondió HTTP 200.
- False ante timeout, error de conexión, otro status o circuito abierto.
- Nunca lanza por un fallo de entrega: fallar es un resultado esperado.
- No toca el store.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from ..errors import DeliveryFailure
from .circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)


class DeliveryClient(ABC):
    """Interfaz de entrega usada por el pipeline y el sweeper."""

    @abstractmethod
    def deliver(self, payload: Dict[str, Any]) -> bool:
        """Intenta enviar el payload. True solo con ACK confirmado."""

    def get_stats(self) -> dict:
        return {}


class CollectorClient(DeliveryClient):
    """POST JSON al colector con timeout acotado."""

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 5.0,
        breaker: Optional[CircuitBreaker] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._url = url
        self._timeout = float(timeout_seconds)
        self._breaker = breaker
        self._http = session if session is not None else requests

        self._lock = threading.Lock()
        self._attempts = 0
        self._successes = 0
        self._failures = 0
        self._short_circuited = 0

    @property
    def breaker(self) -> Optional[CircuitBreaker]:
        return self._breaker

    def deliver(self, payload: Dict[str, Any]) -> bool:
        with self._lock:
            self._attempts += 1

        if self._breaker is not None and not self._breaker.allow():
            with self._lock:
                self._short_circuited += 1
                self._failures += 1
            logger.warning(
                "[DELIVERY] Circuito abierto, entrega omitida (reintento en %.1fs)",
                self._breaker.remaining_seconds(),
            )
            return False

        try:
            self._post(payload)
        except DeliveryFailure as e:
            if self._breaker is not None:
                self._breaker.record_failure(e)
            with self._lock:
                self._failures += 1
            logger.warning("[DELIVERY] Error enviando al colector: %s", e)
            return False

        if self._breaker is not None:
            self._breaker.record_success()
        with self._lock:
            self._successes += 1
        return True

    def _post(self, payload: Dict[str, Any]) -> None:
        logger.debug("[DELIVERY] Enviando al colector url=%s payload=%s", self._url, payload)
        try:
            response = self._http.post(self._url, json=payload, timeout=self._timeout)
        except requests.Timeout as e:
            raise DeliveryFailure(f"timeout after {self._timeout:.1f}s") from e
        except requests.RequestException as e:
            raise DeliveryFailure(f"transport error: {type(e).__name__}") from e

        if response.status_code != 200:
            raise DeliveryFailure("collector rejected payload", status_code=response.status_code)
        logger.debug("[DELIVERY] Respuesta del colector: %s", response.status_code)

    def get_stats(self) -> dict:
        with self._lock:
            stats = {
                "url": self._url,
                "timeout_seconds": self._timeout,
                "attempts": self._attempts,
                "successes": self._successes,
                "failures": self._failures,
                "short_circuited": self._short_circuited,
            }
        if self._breaker is not None:
            breaker_stats = self._breaker.get_stats()
            stats["circuit_state"] = breaker_stats["state"]
            stats["circuit_breaker"] = breaker_stats
        return stats
