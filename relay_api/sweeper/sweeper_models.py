"""Modelos y configuración para el Retry Sweeper."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class SweeperConfig:
    """Configuración del sweeper de reintentos."""
    interval_seconds: float = 300.0
    stop_timeout_seconds: float = 30.0

    @classmethod
    def from_env(cls) -> "SweeperConfig":
        return cls(
            interval_seconds=float(os.getenv("RETRY_INTERVAL_SECONDS", "300")),
            stop_timeout_seconds=float(os.getenv("SWEEPER_STOP_TIMEOUT_SECONDS", "30")),
        )


@dataclass
class SweepResult:
    """Resultado de una pasada."""
    pending: int = 0
    delivered: int = 0
    failed: int = 0
    errors: int = 0
    interrupted: bool = False


@dataclass
class SweeperStats:
    """Estadísticas acumuladas del sweeper."""
    runs: int = 0
    skipped: int = 0
    delivered: int = 0
    failed: int = 0
    errors: int = 0
    last_run_at: Optional[float] = None
    last_batch_size: int = 0
