# -*- coding: utf-8 -*-
"""
Patient records API

Patient CRUD plus the embedded clinical readings of each patient, and a query
for patients whose readings fall outside normal blood-pressure bounds.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .app_db import PatientStore
from .config import Settings, settings as default_settings
from .patients.api import router as patients_router
from .patients.errors import InvalidPayload, PatientError
from .patients.storage import CriticalThresholds

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(level.lower(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _patient_error_handler(request: Request, exc: PatientError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    payload = InvalidPayload(errors=errors)
    return JSONResponse(status_code=payload.status_code, content=payload.to_dict())


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[Settings] = None, store: Optional[PatientStore] = None) -> FastAPI:
    settings = settings or default_settings
    store = store or PatientStore(settings.db_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.open()
        try:
            yield
        finally:
            store.close()

    app = FastAPI(
        title="Patient API",
        description="API for managing patients and their clinical data",
        version="1.0.0",
        docs_url="/api-docs",
        redoc_url=None,
        openapi_url="/api-docs/openapi.json",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.thresholds = CriticalThresholds.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PatientError, _patient_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(patients_router)

    @app.get("/api/health")
    def health() -> dict:
        return {"ok": True}

    @app.get("/", include_in_schema=False)
    def root() -> dict:
        return {"message": "Patient API", "docs": "/api-docs"}

    return app


app = create_app()


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    level = default_settings.log_level if default_settings.log_level in _LOG_LEVELS else "info"
    configure_logging(level)
    uvicorn.run(
        "patient_api.api:app",
        host=default_settings.host,
        port=default_settings.port,
        log_level=level,
        reload=False,
    )
