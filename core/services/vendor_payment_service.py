"""
Vendor payment service.

Loads a consistent snapshot of a vendor's outstanding purchase orders into an
AllocationSession and records the payment once the operator is done.
"""

import logging
from datetime import date

from clients.backoffice_client import BackofficeClient
from core.exceptions import EngineValidationError
from core.models import PaymentAllocationLine, VendorPaymentRequest
from core.services.allocation_service import AllocationEngine, AllocationSession, filter_outstanding
from utils.money import parse_money
from utils.timezone import today_utc

logger = logging.getLogger(__name__)

ALLOCATION_NOTE = "Payment for PO"


class VendorPaymentService:
    """Service for vendor payments and purchase-order allocation."""

    def __init__(self, client: BackofficeClient, engine: AllocationEngine | None = None):
        self.client = client
        self.engine = engine or AllocationEngine()

    def open_session(self, vendor_id: int) -> AllocationSession:
        """Start an allocation session on a fresh outstanding snapshot."""
        invoices = filter_outstanding(self.client.get_outstanding(vendor_id).get("purchase_orders"))
        return AllocationSession(invoices, engine=self.engine)

    def refresh(self, session: AllocationSession, vendor_id: int) -> None:
        """Reload outstanding balances. In-progress selections are discarded."""
        session.load_snapshot(filter_outstanding(self.client.get_outstanding(vendor_id).get("purchase_orders")))

    def build_payment_request(
        self,
        session: AllocationSession,
        vendor_id: int,
        payment_method_id: int,
        amount,
        payment_date: date | None = None,
        reference_number: str | None = None,
        transaction_id: str | None = None,
        notes: str | None = None,
        default_invoice_id: int | None = None,
    ) -> VendorPaymentRequest:
        """
        Validate the session and build the vendor payment payload.

        Allocations are omitted entirely when there are none.

        Raises:
            EngineValidationError: On missing payment method or amount, or any
                allocation failure from the engine
        """
        if not payment_method_id:
            raise EngineValidationError("Please select a payment method")

        payment_amount = parse_money(amount)
        allocations = session.allocations(payment_amount, default_invoice_id=default_invoice_id)

        if session.exceeds_payment_amount(payment_amount):
            logger.warning(
                f"Vendor {vendor_id}: allocated {session.total_allocated()} exceeds payment {payment_amount}"
            )

        lines = [
            PaymentAllocationLine(purchase_order_id=a.invoice_id, amount=a.amount, notes=ALLOCATION_NOTE)
            for a in allocations
        ]

        return VendorPaymentRequest(
            vendor_id=vendor_id,
            payment_method_id=payment_method_id,
            amount=payment_amount,
            payment_date=payment_date or today_utc(),
            payment_type=session.payment_type,
            reference_number=reference_number or None,
            transaction_id=transaction_id or None,
            notes=notes or None,
            allocations=lines or None,
        )

    def submit(self, session: AllocationSession, vendor_id: int, payment_method_id: int, amount, **kwargs) -> dict:
        """
        Record a vendor payment.

        Keyword arguments are passed to build_payment_request.

        Raises:
            EngineValidationError: If validation fails (nothing is sent)
            BackofficeAPIError: If the backend rejects the payment
        """
        request = self.build_payment_request(session, vendor_id, payment_method_id, amount, **kwargs)
        result = self.client.create_vendor_payment(request.model_dump(mode="json", exclude_none=True))

        logger.info(
            f"Vendor {vendor_id} payment {request.amount} recorded "
            f"({request.payment_type.value}, {len(request.allocations or [])} allocations)"
        )
        return result

