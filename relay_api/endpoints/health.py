"""Health and readiness endpoints."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..services import RelayServices
from .deps import get_services

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    """Liveness probe: ok while the process is up."""
    return {"status": "ok"}


@router.get("/ready")
def ready(services: RelayServices = Depends(get_services)):
    """Readiness probe: the store answers a threshold read."""
    try:
        target_weight = services.store.get_threshold()
    except Exception:
        logger.exception("Readiness check failed")
        return JSONResponse(status_code=503, content={"status": "not ready"})
    return {"status": "ready", "targetWeight": target_weight}


@router.get("/health/delivery")
def delivery_health(services: RelayServices = Depends(get_services)):
    """Estado de la entrega: pendientes, sweeper, cliente y circuit breaker."""
    try:
        pending = services.store.count_undelivered()
    except Exception:
        logger.exception("No se pudo contar pendientes")
        pending = None
    return {
        "pending": pending,
        "ingest": services.pipeline.get_stats(),
        "sweeper": services.sweeper.get_stats(),
        "client": services.client.get_stats(),
    }
