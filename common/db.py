from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from .config import Settings


logger = logging.getLogger(__name__)


def build_sqlalchemy_url(settings: Settings) -> str:
    # ":memory:" se respeta tal cual; cualquier otra ruta se resuelve a absoluta
    # para que el archivo no dependa del cwd del proceso.
    if settings.db_path == ":memory:":
        return "sqlite+pysqlite:///:memory:"
    path = Path(settings.db_path).expanduser().resolve()
    return f"sqlite+pysqlite:///{path}"


def _enable_sqlite_durability(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    # WAL + synchronous=FULL: cada commit queda en disco antes de responder.
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=FULL")
    cursor.close()


def get_engine(settings: Settings) -> Engine:
    url = build_sqlalchemy_url(settings)

    logger.info("[DB] Crear engine SQLite path=%s", settings.db_path)

    # Las peticiones HTTP y el sweeper usan hilos distintos.
    if settings.db_path == ":memory:":
        # Una sola conexión compartida; si no, cada conexión ve otra BD vacía.
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )
    else:
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
            future=True,
        )
        event.listen(engine, "connect", _enable_sqlite_durability)

    # Test de conexión: ayuda a ver en logs si el servicio realmente llega a la BD
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("[DB] Test de conexión OK")
    except Exception:
        logger.exception("[DB] Test de conexión FALLÓ")

    return engine
