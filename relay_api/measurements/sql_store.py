"""Measurement store sobre SQLite (SQLAlchemy Core + text()).

Esquema compatible con la BD del servicio original:
- weight_measurements(id, weight, status, is_anomaly, is_sent_to_vps, timestamp)
- settings(id, targetWeight), una sola fila

Todas las mutaciones pasan por un lock de escritura (modelo de escritor único).
Las lecturas van directo al engine.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceError
from .models import Measurement
from .store_interface import (
    TIMESTAMP_FORMAT,
    MeasurementStore,
    MonotonicClock,
    validate_threshold,
)

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS weight_measurements (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        weight REAL NOT NULL,
        status TEXT NOT NULL,
        is_anomaly BOOLEAN NOT NULL DEFAULT 0,
        is_sent_to_vps BOOLEAN NOT NULL DEFAULT 0,
        timestamp DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_weight_measurements_pending
    ON weight_measurements (is_anomaly, is_sent_to_vps, timestamp)
    """,
    """
    CREATE TABLE IF NOT EXISTS settings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        targetWeight REAL DEFAULT 5000
    )
    """,
)

_COLUMNS = "id, weight, status, is_anomaly, is_sent_to_vps, timestamp"


class SqlMeasurementStore(MeasurementStore):
    """Store durable respaldado por SQLAlchemy."""

    def __init__(self, engine: Engine, default_target_weight: float = 5000.0) -> None:
        self._engine = engine
        self._default_target_weight = float(default_target_weight)
        self._write_lock = threading.Lock()
        self._clock = MonotonicClock()

    def initialize(self, default_target_weight: float) -> None:
        self._default_target_weight = validate_threshold(default_target_weight)
        try:
            with self._write_lock, self._engine.begin() as conn:
                for ddl in _SCHEMA:
                    conn.execute(text(ddl))
                count = conn.execute(text("SELECT COUNT(*) FROM settings")).scalar_one()
                if count == 0:
                    conn.execute(
                        text("INSERT INTO settings (targetWeight) VALUES (:tw)"),
                        {"tw": self._default_target_weight},
                    )
                    logger.info(
                        "[STORE] settings inicializado targetWeight=%s",
                        self._default_target_weight,
                    )
        except SQLAlchemyError as e:
            logger.exception("[STORE] No se pudo inicializar el esquema")
            raise PersistenceError(f"schema initialization failed: {type(e).__name__}") from e

    def insert(self, weight: float, status: str, is_anomaly: bool) -> int:
        try:
            with self._write_lock, self._engine.begin() as conn:
                ts = self._clock.now()
                result = conn.execute(
                    text(
                        """
                        INSERT INTO weight_measurements
                            (weight, status, is_anomaly, is_sent_to_vps, timestamp)
                        VALUES (:weight, :status, :is_anomaly, 0, :ts)
                        """
                    ),
                    {
                        "weight": float(weight),
                        "status": status,
                        "is_anomaly": 1 if is_anomaly else 0,
                        "ts": ts.strftime(TIMESTAMP_FORMAT),
                    },
                )
                new_id = result.lastrowid
        except SQLAlchemyError as e:
            logger.exception("[STORE] INSERT rechazado weight=%s status=%s", weight, status)
            raise PersistenceError(f"insert failed: {type(e).__name__}") from e

        if new_id is None:
            raise PersistenceError("insert did not return an id")
        return int(new_id)

    def mark_sent(self, measurement_id: int) -> None:
        try:
            with self._write_lock, self._engine.begin() as conn:
                conn.execute(
                    text(
                        """
                        UPDATE weight_measurements
                        SET is_sent_to_vps = 1
                        WHERE id = :id AND is_anomaly = 0 AND is_sent_to_vps = 0
                        """
                    ),
                    {"id": int(measurement_id)},
                )
        except SQLAlchemyError as e:
            logger.exception("[STORE] UPDATE is_sent_to_vps falló id=%s", measurement_id)
            raise PersistenceError(f"mark_sent failed: {type(e).__name__}") from e

    def get(self, measurement_id: int) -> Optional[Measurement]:
        row = self._fetch_one(
            f"SELECT {_COLUMNS} FROM weight_measurements WHERE id = :id",
            {"id": int(measurement_id)},
        )
        return Measurement.from_row(row) if row else None

    def list_undelivered(self) -> List[Measurement]:
        try:
            with self._engine.connect() as conn:
                rows = (
                    conn.execute(
                        text(
                            f"""
                            SELECT {_COLUMNS}
                            FROM weight_measurements
                            WHERE is_anomaly = 0 AND is_sent_to_vps = 0
                            ORDER BY timestamp ASC, id ASC
                            """
                        )
                    )
                    .mappings()
                    .all()
                )
        except SQLAlchemyError as e:
            logger.exception("[STORE] SELECT pendientes falló")
            raise PersistenceError(f"list_undelivered failed: {type(e).__name__}") from e
        return [Measurement.from_row(r) for r in rows]

    def last_normal(self) -> Optional[Measurement]:
        row = self._fetch_one(
            f"""
            SELECT {_COLUMNS}
            FROM weight_measurements
            WHERE is_anomaly = 0
            ORDER BY timestamp DESC, id DESC
            LIMIT 1
            """
        )
        return Measurement.from_row(row) if row else None

    def get_threshold(self) -> float:
        row = self._fetch_one("SELECT targetWeight FROM settings ORDER BY id LIMIT 1")
        if row is None or row["targetWeight"] is None:
            logger.warning(
                "[STORE] settings vacío, usando targetWeight por defecto=%s",
                self._default_target_weight,
            )
            return self._default_target_weight
        return float(row["targetWeight"])

    def set_threshold(self, value: float) -> None:
        target = validate_threshold(value)
        try:
            with self._write_lock, self._engine.begin() as conn:
                result = conn.execute(
                    text("UPDATE settings SET targetWeight = :tw"),
                    {"tw": target},
                )
                if result.rowcount == 0:
                    conn.execute(
                        text("INSERT INTO settings (targetWeight) VALUES (:tw)"),
                        {"tw": target},
                    )
        except SQLAlchemyError as e:
            logger.exception("[STORE] UPDATE settings falló targetWeight=%s", target)
            raise PersistenceError(f"set_threshold failed: {type(e).__name__}") from e
        logger.info("[STORE] targetWeight actualizado a %s", target)

    def count_undelivered(self) -> int:
        row = self._fetch_one(
            """
            SELECT COUNT(*) AS pending
            FROM weight_measurements
            WHERE is_anomaly = 0 AND is_sent_to_vps = 0
            """
        )
        return int(row["pending"]) if row else 0

    def close(self) -> None:
        with self._write_lock:
            self._engine.dispose()
        logger.info("[STORE] Conexión a la BD cerrada")

    def _fetch_one(self, sql: str, params: Optional[dict] = None):
        try:
            with self._engine.connect() as conn:
                return conn.execute(text(sql), params or {}).mappings().first()
        except SQLAlchemyError as e:
            logger.exception("[STORE] SELECT falló")
            raise PersistenceError(f"read failed: {type(e).__name__}") from e
