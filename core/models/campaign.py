"""Campaign discount models.

Shapes returned by the backend's discount calculation endpoint. The engines
only read total_discount, and only for display.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class ActiveCampaign(BaseModel):
    """A campaign that applied to at least one cart line."""

    id: int
    name: str
    code: str | None = None
    type: str | None = None  # percentage | fixed
    discount_value: Decimal | None = None


class DiscountCalculationItem(BaseModel):
    """One cart line sent for discount calculation."""

    product_id: int
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0)


class DiscountResult(BaseModel):
    """Per-line discount returned by the backend."""

    product_id: int
    quantity: int
    unit_price: Decimal
    discount_amount_total: Decimal = Decimal("0")
    active_campaign: ActiveCampaign | None = None


class DiscountCalculation(BaseModel):
    """Aggregate discount for a cart."""

    total_discount: Decimal = Field(Decimal("0"), ge=0)
    items: list[DiscountResult] = Field(default_factory=list)
    campaigns_applied: list[ActiveCampaign] = Field(default_factory=list)
