# grovi/api/errors.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from grovi.services.errors import (
    ConfigError,
    Cooldown,
    EngineError,
    InvalidRequest,
    NotFound,
    Unavailable,
)

log = logging.getLogger(__name__)


def status_for(exc: EngineError) -> int:
    if isinstance(exc, (NotFound, Unavailable)):
        return 404
    if isinstance(exc, Cooldown):
        return 429
    if isinstance(exc, InvalidRequest):
        return 422
    if isinstance(exc, ConfigError):
        return 500
    return 400


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(EngineError)
    async def engine_error_handler(request: Request, exc: EngineError):
        content = {"success": False, "error": exc.message, "code": exc.code}
        if isinstance(exc, Cooldown):
            content["remainingMinutes"] = exc.remaining_minutes
        return JSONResponse(status_code=status_for(exc), content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"success": False, "error": "Invalid request", "detail": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Server error"},
        )
