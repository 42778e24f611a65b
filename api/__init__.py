"""HTTP surface over the pricing and allocation engines."""

from api.base import (
    APIResponse,
    success_response,
    error_response,
    ErrorCodes,
)
from api.app import create_app
