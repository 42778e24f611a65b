"""Order amount models.

CartTotals is derived from line items. OrderAmounts is the finalized money
breakdown handed to the order-submission flow.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from core.models.line_item import LineItem
from core.models.payment import FeeEstimate, PaymentMethod, PaymentOption, PaymentPlan


class CartTotals(BaseModel):
    """Money totals of a cart before a payment plan is chosen."""

    subtotal: Decimal
    line_discount: Decimal = Decimal("0.00")  # Sum of per-line discounts, already in subtotal
    campaign_discount: Decimal  # Display only, already netted into line discounts
    vat_rate: Decimal
    vat_amount: Decimal
    shipping_amount: Decimal
    grand_total: Decimal


class CheckoutPreview(BaseModel):
    """Cart sidebar preview. Independent of the submission total."""

    subtotal: Decimal
    discount: Decimal
    discounted_total: Decimal
    free_shipping_threshold: Decimal
    free_shipping_remaining: Decimal
    free_shipping_progress: Decimal  # Percent, 0-100
    qualifies_for_free_shipping: bool


class OrderAmounts(BaseModel):
    """Finalized amounts POSTed with an order."""

    subtotal: Decimal
    discount: Decimal
    vat: Decimal
    shipping: Decimal
    grand_total: Decimal
    advance: Decimal
    cod: Decimal
    fees: Decimal


class OrderQuoteRequest(BaseModel):
    """Everything needed to price an order and split its payment."""

    items: list[LineItem] = Field(..., min_length=1)
    campaign_discount: Decimal = Field(Decimal("0"), ge=0)
    vat_rate: Decimal | None = Field(None, ge=0)
    shipping_amount: Decimal = Field(Decimal("0"), ge=0)
    payment_option: PaymentOption = PaymentOption.FULL
    advance_amount: Decimal | None = None
    payment_methods: list[PaymentMethod] = Field(default_factory=list)
    advance_method_id: int | None = None
    cod_method_id: int | None = None


class OrderQuote(BaseModel):
    """Priced order with payment split and fee estimate."""

    totals: CartTotals
    plan: PaymentPlan
    fees: FeeEstimate
    amounts: OrderAmounts
    advance_method: PaymentMethod | None = None
    cod_method: PaymentMethod | None = None


class CustomerInfo(BaseModel):
    """Customer details attached to a social-commerce order."""

    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=50)
    email: str | None = Field(None, max_length=255)


class PlacedOrder(BaseModel):
    """Result of a successful order submission."""

    order_id: int
    order_number: str | None = None
    amounts: OrderAmounts
    advance_payment_recorded: bool = False
