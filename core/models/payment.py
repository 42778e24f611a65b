"""Payment method, payment plan and fee models.

A payment plan splits an order's grand total into the part collected
upfront (advance) and the part collected on delivery (COD).
advance + cod == grand_total holds for every variant.
"""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from utils.money import parse_money, parse_rate


class PaymentOption(str, Enum):
    """How the customer pays for a social-commerce order."""

    FULL = "full"        # Everything upfront
    PARTIAL = "partial"  # Advance upfront, remainder on delivery
    NONE = "none"        # Everything on delivery


class PaymentMethod(BaseModel):
    """Payment method as served by the backend. Read-only to the engines."""

    id: int
    code: str | None = None
    name: str
    type: str
    supports_partial: bool = False
    requires_reference: bool = False
    fixed_fee: Decimal = Field(Decimal("0"), ge=0)
    percentage_fee: Decimal = Field(Decimal("0"), ge=0)

    @field_validator("fixed_fee", mode="before")
    @classmethod
    def parse_fixed_fee(cls, value):
        """Backend sends fees as numbers, numeric strings or null."""
        return parse_money(value)

    @field_validator("percentage_fee", mode="before")
    @classmethod
    def parse_percentage_fee(cls, value):
        """Rates keep their precision, e.g. 1.125 stays 1.125."""
        return parse_rate(value)


class _PlanBase(BaseModel):
    grand_total: Decimal = Field(..., ge=0)
    advance: Decimal = Field(..., ge=0)
    cod: Decimal = Field(..., ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_reconciles(self):
        if self.advance + self.cod != self.grand_total:
            raise ValueError(
                f"advance ({self.advance}) + cod ({self.cod}) must equal grand_total ({self.grand_total})"
            )
        return self


class FullPayment(_PlanBase):
    """Whole total collected upfront."""

    kind: Literal["full"] = "full"


class PartialAdvancePayment(_PlanBase):
    """Advance collected upfront, the rest on delivery."""

    kind: Literal["partial"] = "partial"


class NoneUpfrontPayment(_PlanBase):
    """Whole total collected on delivery."""

    kind: Literal["none"] = "none"


PaymentPlan = Annotated[
    Union[FullPayment, PartialAdvancePayment, NoneUpfrontPayment],
    Field(discriminator="kind"),
]


class FeeEstimate(BaseModel):
    """Advisory gateway fees. Never deducted from any order amount."""

    advance_fee: Decimal = Decimal("0.00")
    cod_fee: Decimal = Decimal("0.00")
    total_fees: Decimal = Decimal("0.00")
