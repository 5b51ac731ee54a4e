"""Abstract interface for the measurement store.

Pipeline y sweeper solo conocen esta interfaz; el proceso es dueño de la
implementación concreta y la inyecta explícitamente.

Implementations:
- SqlMeasurementStore: SQLite vía SQLAlchemy (producción)
- InMemoryMeasurementStore: dict en memoria (tests, ejecuciones efímeras)
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

from ..errors import InvalidInputError
from .models import Measurement

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def validate_threshold(value: float) -> float:
    """Valida un targetWeight: número finito y positivo."""
    if isinstance(value, bool):
        raise InvalidInputError("targetWeight must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidInputError(f"targetWeight is not a number: {value!r}")
    if not math.isfinite(number) or number <= 0:
        raise InvalidInputError(f"targetWeight must be positive and finite, got {value!r}")
    return number


class MonotonicClock:
    """Reloj UTC que nunca retrocede (orden por timestamp no decreciente).

    No es thread-safe: el store lo llama bajo su lock de escritura.
    """

    def __init__(self) -> None:
        self._last: Optional[datetime] = None

    def now(self) -> datetime:
        ts = datetime.now(timezone.utc)
        if self._last is not None and ts < self._last:
            ts = self._last
        self._last = ts
        return ts


class MeasurementStore(ABC):
    """Log durable de mediciones + umbral único."""

    @abstractmethod
    def initialize(self, default_target_weight: float) -> None:
        """Crea el esquema si falta y siembra el umbral por defecto."""

    @abstractmethod
    def insert(self, weight: float, status: str, is_anomaly: bool) -> int:
        """Agrega una medición con is_sent_to_vps=False.

        Returns:
            id asignado por el store

        Raises:
            PersistenceError: si la escritura no quedó persistida
        """

    @abstractmethod
    def mark_sent(self, measurement_id: int) -> None:
        """Marca como entregada. Idempotente; no-op si ya lo estaba o si el id no existe."""

    @abstractmethod
    def get(self, measurement_id: int) -> Optional[Measurement]:
        ...

    @abstractmethod
    def list_undelivered(self) -> List[Measurement]:
        """Mediciones normales sin entregar, de la más antigua a la más reciente."""

    def count_undelivered(self) -> int:
        return len(self.list_undelivered())

    @abstractmethod
    def last_normal(self) -> Optional[Measurement]:
        """Última medición no anómala, o None si todavía no hay ninguna."""

    @abstractmethod
    def get_threshold(self) -> float:
        ...

    @abstractmethod
    def set_threshold(self, value: float) -> None:
        """Reemplaza el targetWeight.

        Raises:
            InvalidInputError: si el valor no es un número positivo y finito
        """

    @abstractmethod
    def close(self) -> None:
        ...
