"""Módulo de endpoints HTTP."""

from .health import router as health_router
from .data_ingest import router as data_ingest_router
from .target_weight import router as target_weight_router

__all__ = [
    "health_router",
    "data_ingest_router",
    "target_weight_router",
]
