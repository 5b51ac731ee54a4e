from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common.config import Settings, get_settings

from .endpoints import data_ingest_router, health_router, target_weight_router
from .schemas import MSG_INVALID_DATA, MSG_INVALID_TARGET, MessageOut
from .services import RelayServices, build_services

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[RelayServices] = None,
    start_sweeper: bool = True,
) -> FastAPI:
    """Crea la app FastAPI.

    Los componentes se construyen en el lifespan (no al importar) y se cierran
    en orden inverso al apagar: primero el sweeper, después el store.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        nonlocal services
        if services is None:
            services = build_services(settings or get_settings())
        app.state.services = services

        if start_sweeper:
            services.sweeper.start()
        try:
            yield
        finally:
            services.sweeper.stop()
            services.store.close()
            logger.info("Relay detenido, conexión a la BD cerrada")

    app = FastAPI(title="Weight Relay Service", version="1.0.0", lifespan=lifespan)

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError):
        # JSON mal formado o body que no es un objeto: mismo 400 que una lectura inválida.
        message = MSG_INVALID_TARGET if request.url.path == "/api/targetWeight" else MSG_INVALID_DATA
        return JSONResponse(status_code=400, content=MessageOut(message=message).model_dump())

    app.include_router(health_router)
    app.include_router(data_ingest_router)
    app.include_router(target_weight_router)
    return app


app = create_app()
