"""Engine and backend configuration."""

import logging
import os
from decimal import Decimal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

_ENV_PREFIX = "BACKOFFICE_"


class EngineConfig(BaseModel):
    """
    Pricing and backend configuration.

    VAT is inclusive in catalogue prices, so additive VAT stays disabled by
    default. The rate is kept so the code path can be switched back on.
    """

    # Pricing
    vat_enabled: bool = Field(
        default=False,
        description="Whether additive VAT is applied on top of the subtotal",
    )
    default_vat_rate: Decimal = Field(
        default=Decimal("0"),
        description="VAT percentage used when the caller does not supply one",
        ge=0,
        le=100,
    )
    free_shipping_threshold: int = Field(
        default=5000,
        description="Discounted cart total that qualifies for free shipping",
        gt=0,
    )
    currency_symbol: str = Field(
        default="৳",
        description="Symbol used when formatting amounts for operators",
    )

    # Backend API
    api_base_url: str = Field(
        default="http://localhost:8000/api",
        description="Base URL of the back-office REST API",
    )
    api_token: str | None = Field(
        default=None,
        description="Bearer token for the back-office REST API",
    )
    api_timeout_seconds: int = Field(
        default=10,
        description="Per-request timeout for backend calls",
        ge=1,
        le=120,
    )


def load_config(dotenv: bool = True) -> EngineConfig:
    """
    Build EngineConfig from BACKOFFICE_* environment variables.

    Unset variables fall back to the model defaults.

    Raises:
        ValueError: If a variable is set to a value the model rejects.
    """
    if dotenv:
        load_dotenv()

    values = {}
    for name in EngineConfig.model_fields:
        raw = os.getenv(f"{_ENV_PREFIX}{name.upper()}")
        if raw is not None:
            values[name] = raw

    try:
        config = EngineConfig(**values)
    except ValidationError as e:
        raise ValueError(f"Invalid {_ENV_PREFIX}* configuration: {e}")

    logger.info(f"Engine config loaded (vat_enabled={config.vat_enabled}, api={config.api_base_url})")
    return config
