"""Circuit breaker del colector.

Con el colector caído cada entrega esperaría el timeout completo. Tras
`failure_threshold` DeliveryFailure consecutivos el circuito se abre y las
entregas se omiten sin tocar la red; la lectura queda pendiente para el sweeper.
Pasado `recovery_timeout_seconds` se deja pasar una entrega de prueba.

Solo los DeliveryFailure cuentan: un bug del cliente no dice nada sobre la
salud del colector.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..errors import DeliveryFailure

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    failure_threshold: int = 5
    recovery_timeout_seconds: float = 30.0
    success_threshold: int = 1

    @classmethod
    def from_env(cls) -> "CircuitBreakerConfig":
        return cls(
            failure_threshold=int(os.getenv("COLLECTOR_CB_FAILURE_THRESHOLD", "5")),
            recovery_timeout_seconds=float(os.getenv("COLLECTOR_CB_RECOVERY_SECONDS", "30")),
            success_threshold=int(os.getenv("COLLECTOR_CB_SUCCESS_THRESHOLD", "1")),
        )


class CircuitBreaker:
    """Estado de salud del colector visto desde las entregas.

    Uso (lo hace CollectorClient):
        if not breaker.allow():
            return False
        try:
            post(payload)
        except DeliveryFailure as e:
            breaker.record_failure(e)
            return False
        breaker.record_success()
    """

    def __init__(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self._config = config or CircuitBreakerConfig.from_env()
        self._clock = clock
        self._lock = threading.Lock()

        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._trial_successes = 0
        self._opened_at = 0.0
        self._times_opened = 0
        self._last_failure: Optional[str] = None
        self._last_transition: Optional[str] = None

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._maybe_half_open()
            return self._state

    def allow(self) -> bool:
        """True si la entrega puede intentarse ahora."""
        with self._lock:
            self._maybe_half_open()
            return self._state != CircuitState.OPEN

    def remaining_seconds(self) -> float:
        with self._lock:
            if self._state != CircuitState.OPEN:
                return 0.0
            return max(0.0, self._config.recovery_timeout_seconds - (self._clock() - self._opened_at))

    def record_success(self) -> None:
        with self._lock:
            self._consecutive_failures = 0
            if self._state == CircuitState.HALF_OPEN:
                self._trial_successes += 1
                if self._trial_successes >= self._config.success_threshold:
                    self._move_to(CircuitState.CLOSED, "collector acknowledged")

    def record_failure(self, failure: DeliveryFailure) -> None:
        with self._lock:
            self._consecutive_failures += 1
            self._last_failure = str(failure)
            if self._state == CircuitState.HALF_OPEN:
                self._open(f"trial delivery failed: {failure}")
            elif (
                self._state == CircuitState.CLOSED
                and self._consecutive_failures >= self._config.failure_threshold
            ):
                self._open(f"{self._consecutive_failures} consecutive failures, last: {failure}")

    def _maybe_half_open(self) -> None:
        if self._state != CircuitState.OPEN:
            return
        if self._clock() - self._opened_at >= self._config.recovery_timeout_seconds:
            self._trial_successes = 0
            self._move_to(CircuitState.HALF_OPEN, "recovery window elapsed")

    def _open(self, reason: str) -> None:
        self._opened_at = self._clock()
        self._times_opened += 1
        self._move_to(CircuitState.OPEN, reason)

    def _move_to(self, new_state: CircuitState, reason: str) -> None:
        previous = self._state
        self._state = new_state
        self._last_transition = f"{previous.value} -> {new_state.value}"
        log = logger.warning if new_state == CircuitState.OPEN else logger.info
        log("[DELIVERY] Colector '%s': %s (%s)", self.name, self._last_transition, reason)

    def get_stats(self) -> dict:
        with self._lock:
            self._maybe_half_open()
            return {
                "name": self.name,
                "state": self._state.value,
                "consecutive_failures": self._consecutive_failures,
                "times_opened": self._times_opened,
                "last_transition": self._last_transition,
                "last_failure": self._last_failure,
                "failure_threshold": self._config.failure_threshold,
                "recovery_timeout_seconds": self._config.recovery_timeout_seconds,
            }
