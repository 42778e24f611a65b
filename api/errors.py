"""Global exception handlers for FastAPI.

Engine validation errors carry their own code and become 400s. Back-office
failures become 502s without leaking backend details to the caller.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from clients.backoffice_client import BackofficeAPIError
from core.exceptions import EngineValidationError

logger = logging.getLogger(__name__)


def _error(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, request_id).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(EngineValidationError)
    async def engine_validation_handler(request: Request, exc: EngineValidationError):
        return _error(request, 400, exc.code, str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return _error(request, 404, ErrorCodes.NOT_FOUND, message)
        return _error(request, 400, ErrorCodes.INVALID_REQUEST, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(BackofficeAPIError)
    async def backoffice_error_handler(request: Request, exc: BackofficeAPIError):
        logger.error(f"Back-office call failed (status={exc.status_code}): {exc}")
        return _error(request, 502, ErrorCodes.SERVICE_UNAVAILABLE, "Back-office API is unavailable")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _error(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
