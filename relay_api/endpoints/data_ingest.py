"""Endpoint de ingesta de lecturas del sensor."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..errors import InvalidInputError, PersistenceError
from ..schemas import MSG_INVALID_DATA, ErrorOut, MessageOut, ReadingIn
from ..services import RelayServices
from .deps import get_services

router = APIRouter(tags=["ingest"])
logger = logging.getLogger(__name__)


@router.post("/api/data")
def ingest_data(payload: ReadingIn, services: RelayServices = Depends(get_services)):
    """Recibe {weight, status} del sensor (p.ej. ESP8266).

    La respuesta no espera a que el colector confirme: una entrega fallida
    queda pendiente para el sweeper.
    """
    try:
        return services.pipeline.ingest(payload.weight, payload.status)
    except InvalidInputError as e:
        logger.info("[INGEST] Lectura rechazada: %s", e)
        return JSONResponse(status_code=400, content=MessageOut(message=MSG_INVALID_DATA).model_dump())
    except PersistenceError as e:
        logger.error("[INGEST] Lectura perdida, el store rechazó la escritura: %s", e)
        return JSONResponse(status_code=500, content=ErrorOut(error=str(e)).model_dump())
