"""Core domain models."""

from core.models.line_item import LineItem
from core.models.payment import (
    PaymentOption, PaymentMethod, PaymentPlan,
    FullPayment, PartialAdvancePayment, NoneUpfrontPayment, FeeEstimate,
)
from core.models.campaign import ActiveCampaign, DiscountCalculationItem, DiscountResult, DiscountCalculation
from core.models.order import (
    CartTotals, CheckoutPreview, OrderAmounts, OrderQuoteRequest, OrderQuote,
    CustomerInfo, PlacedOrder,
)
from core.models.purchase_order import (
    PaymentType, OutstandingInvoice, AllocationSelection, Allocation,
    PaymentAllocationLine, VendorPaymentRequest,
)

__all__ = [
    # LineItem
    "LineItem",
    # Payment
    "PaymentOption", "PaymentMethod", "PaymentPlan",
    "FullPayment", "PartialAdvancePayment", "NoneUpfrontPayment", "FeeEstimate",
    # Campaign
    "ActiveCampaign", "DiscountCalculationItem", "DiscountResult", "DiscountCalculation",
    # Order
    "CartTotals", "CheckoutPreview", "OrderAmounts", "OrderQuoteRequest", "OrderQuote",
    "CustomerInfo", "PlacedOrder",
    # Purchase order
    "PaymentType", "OutstandingInvoice", "AllocationSelection", "Allocation",
    "PaymentAllocationLine", "VendorPaymentRequest",
]
