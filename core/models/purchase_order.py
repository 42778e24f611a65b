"""Vendor payment and purchase-order allocation models.

An outstanding purchase order is an immutable snapshot fetched at allocation
time. A payment may be split across several of them, partially or not at all.
"""

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class PaymentType(str, Enum):
    """What a vendor payment is for."""

    PURCHASE_ORDER = "purchase_order"  # Settles outstanding purchase orders
    ADVANCE = "advance"                # Unallocated credit held with the vendor


class OutstandingInvoice(BaseModel):
    """Purchase order with an unpaid balance owed to a vendor."""

    id: int
    po_number: str | None = None
    outstanding_amount: Decimal = Field(..., ge=0)
    status: str | None = None

    model_config = {"frozen": True}


class AllocationSelection(BaseModel):
    """Operator's in-progress choice for one purchase order."""

    selected: bool = False
    amount: Decimal = Decimal("0")

    model_config = {"frozen": True}


class Allocation(BaseModel):
    """Part of a payment assigned to a purchase order."""

    invoice_id: int
    amount: Decimal = Field(..., gt=0)

    model_config = {"frozen": True}


class PaymentAllocationLine(BaseModel):
    """Allocation as the vendor-payments endpoint expects it."""

    purchase_order_id: int
    amount: Decimal
    notes: str | None = None


class VendorPaymentRequest(BaseModel):
    """Payload for recording a vendor payment."""

    vendor_id: int
    payment_method_id: int
    amount: Decimal = Field(..., gt=0)
    payment_date: date
    payment_type: PaymentType = PaymentType.PURCHASE_ORDER
    reference_number: str | None = None
    transaction_id: str | None = None
    notes: str | None = None
    allocations: list[PaymentAllocationLine] | None = None
