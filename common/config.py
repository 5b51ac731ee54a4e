from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env en la raíz del repo; se puede sobreescribir con RELAY_ENV_FILE.
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    db_path: str

    collector_url: str
    delivery_timeout_seconds: float
    collector_cb_enabled: bool

    retry_interval_seconds: float
    default_target_weight: float
    resend_last_normal_on_anomaly: bool

    host: str
    port: int
    log_level: str


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("RELAY_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    db_path = os.getenv("WEIGHT_DB_PATH", "weight_sensor.db")

    # Endpoint del colector aguas abajo (antes "VPS").
    collector_url = os.getenv("COLLECTOR_URL", "http://localhost:8080/api/data")
    delivery_timeout_seconds = float(os.getenv("DELIVERY_TIMEOUT_SECONDS", "5"))
    collector_cb_enabled = _env_flag("COLLECTOR_CB_ENABLED", "1")

    retry_interval_seconds = float(os.getenv("RETRY_INTERVAL_SECONDS", "300"))
    default_target_weight = float(os.getenv("DEFAULT_TARGET_WEIGHT", "5000"))
    resend_last_normal_on_anomaly = _env_flag("RESEND_LAST_NORMAL_ON_ANOMALY", "1")

    return Settings(
        db_path=db_path,
        collector_url=collector_url,
        delivery_timeout_seconds=delivery_timeout_seconds,
        collector_cb_enabled=collector_cb_enabled,
        retry_interval_seconds=retry_interval_seconds,
        default_target_weight=default_target_weight,
        resend_last_normal_on_anomaly=resend_last_normal_on_anomaly,
        host=os.getenv("RELAY_HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "83")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
