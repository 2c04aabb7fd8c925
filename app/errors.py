"""Structured error responses: one JSON shape for HTTP and onboarding errors."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.onboarding.errors import (
    ConfigurationInvalid,
    GoalPersistenceError,
    InvalidTransition,
    OnboardingError,
)

logger = logging.getLogger(__name__)


def _error(status_code: int, detail: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": True, "status_code": status_code, "detail": detail, **extra},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the FastAPI app."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, exc.detail)

    @app.exception_handler(InvalidTransition)
    async def invalid_transition_handler(request: Request, exc: InvalidTransition):
        return _error(409, str(exc))

    @app.exception_handler(ConfigurationInvalid)
    async def configuration_invalid_handler(request: Request, exc: ConfigurationInvalid):
        return _error(422, str(exc), errors=exc.errors)

    @app.exception_handler(GoalPersistenceError)
    async def persistence_handler(request: Request, exc: GoalPersistenceError):
        return _error(503, str(exc))

    @app.exception_handler(OnboardingError)
    async def onboarding_error_handler(request: Request, exc: OnboardingError):
        logger.error("Onboarding internal error on %s: %s", request.url.path, exc)
        return _error(500, "Internal onboarding error")
