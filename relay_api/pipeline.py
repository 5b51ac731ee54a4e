"""Pipeline de ingesta de una lectura.

Orden estricto por lectura:
1. Leer umbral (una sola vez)
2. Clasificar
3. Persistir SIEMPRE (anómala o no) - el log es la fuente de verdad
4. Normal  -> entregar; si el colector confirma, mark_sent
5. Anómala -> responder con la última lectura normal (last known good)

La respuesta al sensor no depende del resultado de la entrega: un fallo de
entrega deja la lectura pendiente para el sweeper y nunca sale como error.
Solo InvalidInputError y PersistenceError se propagan.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Any, Union

from .classification import classify
from .delivery import DeliveryClient
from .errors import InvalidInputError, PersistenceError
from .measurements import Measurement, MeasurementStore
from .schemas import (
    MSG_ANOMALY_NO_HISTORY,
    MSG_TARGET_UPDATED,
    IngestAccepted,
    MessageOut,
    SubstitutedReading,
)

logger = logging.getLogger(__name__)

IngestResponse = Union[IngestAccepted, SubstitutedReading, MessageOut]


def parse_number(raw: Any, field: str) -> float:
    """Convierte un valor "number-like" (número o string numérico) a float finito."""
    if raw is None or isinstance(raw, bool):
        raise InvalidInputError(f"{field} is required and must be a number")
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            raise InvalidInputError(f"{field} is required and must be a number")
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        raise InvalidInputError(f"{field} is not a number: {raw!r}")
    if not math.isfinite(value):
        raise InvalidInputError(f"{field} must be finite, got {raw!r}")
    return value


def parse_status(raw: Any) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidInputError("status must be a non-empty string")
    return raw


class IngestionPipeline:
    """Orquesta store -> clasificación -> entrega para una lectura entrante."""

    def __init__(
        self,
        store: MeasurementStore,
        client: DeliveryClient,
        resend_last_normal_on_anomaly: bool = True,
    ) -> None:
        self._store = store
        self._client = client
        self._resend_last_normal = resend_last_normal_on_anomaly

        self._lock = threading.Lock()
        self._stats = {
            "received": 0,
            "anomalies": 0,
            "delivered_immediately": 0,
            "left_pending": 0,
        }

    def ingest(self, weight: Any, status: Any) -> IngestResponse:
        """Procesa una lectura cruda del transporte.

        Raises:
            InvalidInputError: lectura mal formada; no se persiste nada
            PersistenceError: el store no aceptó la escritura
        """
        weight_value = parse_number(weight, "weight")
        status_value = parse_status(status)

        target_weight = self._store.get_threshold()
        is_anomaly = classify(weight_value, target_weight)

        measurement_id = self._store.insert(weight_value, status_value, is_anomaly)
        self._bump("received")

        logger.info(
            "[INGEST] id=%s weight=%s status=%s targetWeight=%s anomaly=%s",
            measurement_id,
            weight_value,
            status_value,
            target_weight,
            is_anomaly,
        )

        if not is_anomaly:
            record = self._store.get(measurement_id)
            if record is not None:
                self._deliver_record(record, target_weight, source="immediate")
            return IngestAccepted(
                weight=weight_value,
                targetWeight=target_weight,
                status=status_value,
                is_anomaly=False,
            )

        self._bump("anomalies")
        return self._substitute_response(target_weight)

    def update_target_weight(self, raw: Any) -> MessageOut:
        """Operación administrativa: reemplaza el targetWeight.

        Raises:
            InvalidInputError: si no es un número positivo y finito
        """
        value = parse_number(raw, "targetWeight")
        self._store.set_threshold(value)
        return MessageOut(message=MSG_TARGET_UPDATED)

    def _substitute_response(self, target_weight: float) -> IngestResponse:
        last = self._store.last_normal()
        if last is None:
            logger.warning("[INGEST] Anomalía sin lectura normal previa")
            return MessageOut(message=MSG_ANOMALY_NO_HISTORY)

        if self._resend_last_normal:
            self._deliver_record(last, target_weight, source="substitute")

        return SubstitutedReading(
            weight=last.weight,
            status=last.status,
            timestamp=last.timestamp.isoformat(),
        )

    def _deliver_record(self, record: Measurement, target_weight: float, source: str) -> bool:
        """Entrega best-effort; nunca lanza."""
        ok = self._client.deliver(record.to_delivery_payload(target_weight))
        if not ok:
            if source == "immediate":
                self._bump("left_pending")
            logger.warning("[INGEST] Entrega %s fallida id=%s, queda pendiente", source, record.id)
            return False

        try:
            self._store.mark_sent(record.id)
        except PersistenceError:
            # El colector ya lo tiene; el sweeper lo reenviará (at-least-once).
            logger.exception("[INGEST] mark_sent falló id=%s tras entrega OK", record.id)
            return False

        if source == "immediate":
            self._bump("delivered_immediately")
        return True

    def _bump(self, key: str) -> None:
        with self._lock:
            self._stats[key] += 1

    def get_stats(self) -> dict:
        with self._lock:
            return dict(self._stats)
