"""
Allocation engine for vendor payments.

Splits a single vendor payment across outstanding purchase orders under
operator direction. No allocation may exceed its purchase order's outstanding
balance. The allocation sum may differ from the payment amount: paying less
than outstanding, or leaving a remainder as vendor credit, is allowed.

Selections are plain dicts of invoice id -> AllocationSelection. Every
operation returns a new dict and leaves its input untouched.
"""

import logging
from decimal import Decimal

from core.exceptions import (
    EngineValidationError,
    AllocationOverflowError,
    NoAllocationsError,
)
from core.models import (
    OutstandingInvoice,
    AllocationSelection,
    Allocation,
    PaymentType,
)
from utils.money import ZERO, parse_money, to_money

logger = logging.getLogger(__name__)

Selections = dict[int, AllocationSelection]


def filter_outstanding(raw_purchase_orders) -> list[OutstandingInvoice]:
    """
    Normalize the outstanding purchase orders payload from the backend.

    Entries without an integer id are dropped. Amounts are parsed leniently
    and status is kept as a plain string.
    """
    invoices = []
    for raw in raw_purchase_orders or []:
        if not isinstance(raw, dict):
            continue
        invoice_id = raw.get("id")
        if isinstance(invoice_id, bool) or not isinstance(invoice_id, int):
            logger.warning(f"Skipping outstanding purchase order without integer id: {invoice_id!r}")
            continue

        status = raw.get("status")
        invoices.append(OutstandingInvoice(
            id=invoice_id,
            po_number=raw.get("po_number"),
            outstanding_amount=max(ZERO, parse_money(raw.get("outstanding_amount"))),
            status=str(status) if status is not None else None,
        ))
    return invoices


class AllocationEngine:
    """Selection, clamping and validation of purchase-order allocations."""

    @staticmethod
    def initial_selections(invoices: list[OutstandingInvoice]) -> Selections:
        """Every purchase order unselected with nothing allocated."""
        return {invoice.id: AllocationSelection() for invoice in invoices}

    @staticmethod
    def toggle_invoice_selection(invoice_id: int, selections: Selections) -> Selections:
        """
        Flip the selection state of one purchase order.

        Selecting starts from an empty amount; deselecting clears it.
        """
        current = selections.get(invoice_id, AllocationSelection())
        updated = dict(selections)
        updated[invoice_id] = AllocationSelection(selected=not current.selected, amount=ZERO)
        return updated

    @staticmethod
    def set_allocation_amount(invoice_id: int, proposed_amount, invoice: OutstandingInvoice) -> Decimal:
        """
        Clamp a proposed amount into [0, outstanding balance].

        Out-of-range values are capped, not rejected: the operator is still
        typing. Blank or unparseable input counts as 0.

        Raises:
            EngineValidationError: If invoice is not the purchase order named by invoice_id
        """
        if invoice.id != invoice_id:
            raise EngineValidationError(
                f"Purchase order {invoice.id} does not match allocation target {invoice_id}"
            )

        amount = parse_money(proposed_amount)
        return min(max(ZERO, amount), to_money(invoice.outstanding_amount))

    @staticmethod
    def total_allocated(selections: Selections) -> Decimal:
        """Sum of amounts over selected purchase orders."""
        return sum(
            (to_money(s.amount) for s in selections.values() if s.selected),
            ZERO,
        )

    def exceeds_payment_amount(self, payment_amount, selections: Selections) -> bool:
        """
        Whether the selected allocations add up to more than the payment.

        Permitted by validate_before_submit; callers should warn the operator.
        """
        return self.total_allocated(selections) > parse_money(payment_amount)

    def validate_before_submit(
        self,
        payment_amount,
        selections: Selections,
        payment_type: PaymentType | str = PaymentType.PURCHASE_ORDER,
        invoices: list[OutstandingInvoice] | None = None,
        default_invoice_id: int | None = None,
    ) -> list[Allocation]:
        """
        Build the allocation list for submission.

        Args:
            payment_amount: Total amount of the vendor payment
            selections: Operator selections keyed by purchase order id
            payment_type: purchase_order or advance
            invoices: Outstanding snapshot; when given, every allocation is
                checked against its purchase order's balance
            default_invoice_id: Purchase order the backend applies the payment
                to when nothing is allocated explicitly

        Returns:
            Allocations for selected purchase orders with a positive amount.
            Advance payments are never allocated and return [].

        Raises:
            EngineValidationError: Payment amount missing or not positive, or an
                allocation targets a purchase order outside the snapshot
            AllocationOverflowError: An allocation exceeds its outstanding balance
            NoAllocationsError: Purchase-order payment with nothing allocated and
                no default purchase order
        """
        try:
            kind = PaymentType(payment_type)
        except ValueError:
            raise EngineValidationError(f"Unknown payment type {payment_type!r}")

        amount = parse_money(payment_amount)
        if amount <= 0:
            raise EngineValidationError("Payment amount must be greater than 0")

        if kind == PaymentType.ADVANCE:
            return []

        by_id = {invoice.id: invoice for invoice in invoices} if invoices is not None else None

        allocations = []
        for invoice_id, selection in selections.items():
            if not selection.selected or selection.amount <= 0:
                continue

            allocated = to_money(selection.amount)
            if by_id is not None:
                invoice = by_id.get(invoice_id)
                if invoice is None:
                    raise EngineValidationError(
                        f"Purchase order {invoice_id} is not in the outstanding list"
                    )
                if allocated > invoice.outstanding_amount:
                    raise AllocationOverflowError(invoice_id, allocated, invoice.outstanding_amount)

            allocations.append(Allocation(invoice_id=invoice_id, amount=allocated))

        if not allocations and default_invoice_id is None:
            raise NoAllocationsError("Select at least one purchase order and enter an amount")

        return allocations


class AllocationSession:
    """
    In-progress allocation of one vendor payment.

    Two states, chosen by the operator: purchase-order payment (allocations
    shown) and advance payment (no allocations). Any state change, and any
    reload of the outstanding snapshot, starts from a clean selection set.
    """

    def __init__(
        self,
        invoices: list[OutstandingInvoice],
        payment_type: PaymentType = PaymentType.PURCHASE_ORDER,
        engine: AllocationEngine | None = None,
    ):
        self.engine = engine or AllocationEngine()
        self.payment_type = PaymentType(payment_type)
        self._invoices: dict[int, OutstandingInvoice] = {}
        self._selections: Selections = {}
        self.load_snapshot(invoices)

    @property
    def invoices(self) -> list[OutstandingInvoice]:
        return list(self._invoices.values())

    @property
    def selections(self) -> Selections:
        return dict(self._selections)

    def load_snapshot(self, invoices: list[OutstandingInvoice]) -> None:
        """Replace the outstanding snapshot, discarding all selections."""
        if any(s.selected for s in self._selections.values()):
            logger.warning("Outstanding balances reloaded, discarding in-progress allocations")

        self._invoices = {invoice.id: invoice for invoice in invoices}
        self._selections = self.engine.initial_selections(invoices)

    def switch_payment_type(self, payment_type: PaymentType | str) -> None:
        """Change payment type. Prior selections are not restored."""
        new_type = PaymentType(payment_type)
        if new_type == self.payment_type:
            return

        self.payment_type = new_type
        self._selections = self.engine.initial_selections(self.invoices)

    def _require_invoice(self, invoice_id: int) -> OutstandingInvoice:
        if self.payment_type != PaymentType.PURCHASE_ORDER:
            raise EngineValidationError("Allocations are only available for purchase order payments")

        invoice = self._invoices.get(invoice_id)
        if invoice is None:
            raise ValueError(f"Purchase order {invoice_id} not found")
        return invoice

    def toggle(self, invoice_id: int) -> AllocationSelection:
        """Select or deselect a purchase order."""
        self._require_invoice(invoice_id)
        self._selections = self.engine.toggle_invoice_selection(invoice_id, self._selections)
        return self._selections[invoice_id]

    def set_amount(self, invoice_id: int, proposed_amount) -> Decimal:
        """
        Set the amount for a selected purchase order, clamped to its balance.

        Raises:
            EngineValidationError: If the purchase order is not selected
        """
        invoice = self._require_invoice(invoice_id)
        if not self._selections[invoice_id].selected:
            raise EngineValidationError(f"Purchase order {invoice_id} is not selected")

        amount = self.engine.set_allocation_amount(invoice_id, proposed_amount, invoice)
        self._selections = {
            **self._selections,
            invoice_id: AllocationSelection(selected=True, amount=amount),
        }
        return amount

    def total_allocated(self) -> Decimal:
        return self.engine.total_allocated(self._selections)

    def exceeds_payment_amount(self, payment_amount) -> bool:
        return self.engine.exceeds_payment_amount(payment_amount, self._selections)

    def allocations(self, payment_amount, default_invoice_id: int | None = None) -> list[Allocation]:
        """Validated allocations for the current state."""
        return self.engine.validate_before_submit(
            payment_amount,
            self._selections,
            payment_type=self.payment_type,
            invoices=self.invoices,
            default_invoice_id=default_invoice_id,
        )
