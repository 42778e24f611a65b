"""Response envelope shared by every endpoint, and the error codes it carries."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from utils.timezone import now_utc


class APIError(BaseModel):
    """Why a computation was rejected."""

    code: str = Field(..., description="Stable code, e.g. INVALID_ADVANCE_AMOUNT")
    message: str = Field(..., description="Operator-facing message")


class APIMeta(BaseModel):
    """Timestamp and trace id."""

    timestamp: datetime = Field(..., description="When the response was built (UTC)")
    request_id: str = Field(..., description="X-Request-ID of the request, or a fresh UUID")


class APIResponse(BaseModel):
    """
    Envelope returned by every endpoint.

    Decimal amounts inside data are serialized as strings.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta(request_id: str | None) -> APIMeta:
    return APIMeta(timestamp=now_utc(), request_id=request_id or str(uuid4()))


def success_response(data: Any, request_id: str | None = None) -> APIResponse:
    """Create a success response. Generates a request id if none is given."""
    return APIResponse(success=True, data=data, error=None, meta=_meta(request_id))


def error_response(code: str, message: str, request_id: str | None = None) -> APIResponse:
    """Create an error response. Generates a request id if none is given."""
    return APIResponse(
        success=False,
        data=None,
        error=APIError(code=code, message=message),
        meta=_meta(request_id),
    )


class ErrorCodes:
    """
    Standard error codes for consistent error handling.

    Engine validation errors are not listed here; their code travels on the
    exception itself (see core.exceptions).
    """

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
