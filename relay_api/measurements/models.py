"""Modelo de una medición persistida."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class DeliveryState(str, Enum):
    """Estado de entrega de una medición."""
    PENDING = "pending"
    DELIVERED = "delivered"
    NOT_APPLICABLE = "not_applicable"


def parse_timestamp(value: Any) -> datetime:
    """Normaliza el timestamp leído de la BD a datetime UTC."""
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class Measurement:
    """Una lectura del sensor tal como quedó en weight_measurements."""
    id: int
    weight: float
    status: str
    is_anomaly: bool
    is_sent_to_vps: bool
    timestamp: datetime

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Measurement":
        return cls(
            id=int(row["id"]),
            weight=float(row["weight"]),
            status=str(row["status"]),
            is_anomaly=bool(row["is_anomaly"]),
            is_sent_to_vps=bool(row["is_sent_to_vps"]),
            timestamp=parse_timestamp(row["timestamp"]),
        )

    @property
    def delivery_state(self) -> DeliveryState:
        if self.is_anomaly:
            return DeliveryState.NOT_APPLICABLE
        if self.is_sent_to_vps:
            return DeliveryState.DELIVERED
        return DeliveryState.PENDING

    def to_delivery_payload(self, target_weight: Optional[float] = None) -> Dict[str, Any]:
        """Payload que se envía al colector."""
        payload: Dict[str, Any] = {
            "weight": self.weight,
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
        }
        if target_weight is not None:
            payload["targetWeight"] = target_weight
        return payload
