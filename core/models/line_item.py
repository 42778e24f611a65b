"""Cart line item domain models.

All amounts are exact Decimals at currency precision (2 places).
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class LineItem(BaseModel):
    """
    One priced product or service in a cart.

    discount_amount is an absolute currency reduction on the whole line, not a
    percentage. When the backend has already priced the line, amount carries
    that authoritative figure and is used as-is.
    """

    product_id: int | None = None
    batch_id: int | None = None
    name: str | None = Field(None, max_length=255)
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    amount: Decimal | None = None

    model_config = {"frozen": True}
