"""In-memory measurement store.

Same contract as SqlMeasurementStore without durability. Used by tests and
for throwaway runs (WEIGHT_DB_PATH is not involved).
"""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, List, Optional

from .models import Measurement
from .store_interface import MeasurementStore, MonotonicClock, validate_threshold


class InMemoryMeasurementStore(MeasurementStore):

    def __init__(self, default_target_weight: float = 5000.0) -> None:
        self._lock = threading.Lock()
        self._clock = MonotonicClock()
        self._records: Dict[int, Measurement] = {}
        self._next_id = 1
        self._target_weight: Optional[float] = None
        self._default_target_weight = float(default_target_weight)
        self.closed = False

    def initialize(self, default_target_weight: float) -> None:
        with self._lock:
            self._default_target_weight = validate_threshold(default_target_weight)
            if self._target_weight is None:
                self._target_weight = self._default_target_weight

    def insert(self, weight: float, status: str, is_anomaly: bool) -> int:
        with self._lock:
            new_id = self._next_id
            self._next_id += 1
            self._records[new_id] = Measurement(
                id=new_id,
                weight=float(weight),
                status=status,
                is_anomaly=bool(is_anomaly),
                is_sent_to_vps=False,
                timestamp=self._clock.now(),
            )
            return new_id

    def mark_sent(self, measurement_id: int) -> None:
        with self._lock:
            rec = self._records.get(measurement_id)
            if rec is None or rec.is_anomaly or rec.is_sent_to_vps:
                return
            self._records[measurement_id] = replace(rec, is_sent_to_vps=True)

    def get(self, measurement_id: int) -> Optional[Measurement]:
        with self._lock:
            return self._records.get(measurement_id)

    def list_undelivered(self) -> List[Measurement]:
        with self._lock:
            pending = [
                r for r in self._records.values()
                if not r.is_anomaly and not r.is_sent_to_vps
            ]
        return sorted(pending, key=lambda r: (r.timestamp, r.id))

    def last_normal(self) -> Optional[Measurement]:
        with self._lock:
            normal = [r for r in self._records.values() if not r.is_anomaly]
        if not normal:
            return None
        return max(normal, key=lambda r: (r.timestamp, r.id))

    def get_threshold(self) -> float:
        with self._lock:
            if self._target_weight is None:
                return self._default_target_weight
            return self._target_weight

    def set_threshold(self, value: float) -> None:
        target = validate_threshold(value)
        with self._lock:
            self._target_weight = target

    def close(self) -> None:
        self.closed = True
