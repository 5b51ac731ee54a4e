"""Measurement store: log durable de lecturas + umbral.

Contiene:
- Measurement / DeliveryState: modelo de una lectura persistida
- MeasurementStore: interfaz inyectada en pipeline y sweeper
- SqlMeasurementStore: implementación SQLite
- InMemoryMeasurementStore: implementación en memoria
"""

from .models import DeliveryState, Measurement
from .store_interface import MeasurementStore, validate_threshold
from .sql_store import SqlMeasurementStore
from .memory_store import InMemoryMeasurementStore

__all__ = [
    "DeliveryState",
    "Measurement",
    "MeasurementStore",
    "validate_threshold",
    "SqlMeasurementStore",
    "InMemoryMeasurementStore",
]
