"""Endpoint administrativo para el umbral de anomalía."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..errors import InvalidInputError, PersistenceError
from ..schemas import MSG_INVALID_TARGET, ErrorOut, MessageOut, TargetWeightIn
from ..services import RelayServices
from .deps import get_services

router = APIRouter(tags=["settings"])
logger = logging.getLogger(__name__)


@router.post("/api/targetWeight")
def update_target_weight(payload: TargetWeightIn, services: RelayServices = Depends(get_services)):
    try:
        return services.pipeline.update_target_weight(payload.targetWeight)
    except InvalidInputError as e:
        logger.info("[SETTINGS] targetWeight rechazado: %s", e)
        return JSONResponse(status_code=400, content=MessageOut(message=MSG_INVALID_TARGET).model_dump())
    except PersistenceError as e:
        return JSONResponse(status_code=500, content=ErrorOut(error=str(e)).model_dump())
