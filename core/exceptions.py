"""Typed validation errors for pricing and allocation.

Every failure in the engines is a local validation failure: the caller blocks
the submission, shows the message, and lets the operator fix the input.
Subclassing ValueError keeps them compatible with code that already treats
ValueError as "bad input".
"""


class EngineValidationError(ValueError):
    """Base class for caller-supplied input that violates a precondition."""

    code = "VALIDATION_ERROR"


class InvalidLineItemError(EngineValidationError):
    """Quantity is not a positive integer, or a price/discount is negative."""

    code = "INVALID_LINE_ITEM"


class InvalidAdvanceAmount(EngineValidationError):
    """Partial-advance amount is not strictly between 0 and the grand total."""

    code = "INVALID_ADVANCE_AMOUNT"

    def __init__(self, advance, grand_total):
        self.advance = advance
        self.grand_total = grand_total
        super().__init__(
            f"Advance amount {advance} must be greater than 0 and less than total {grand_total}"
        )


class InvalidPaymentOption(EngineValidationError):
    """Payment option is not one of full, partial, none."""

    code = "INVALID_PAYMENT_OPTION"


class MissingPaymentMethodError(EngineValidationError):
    """An upfront payment is due but no payment method was chosen."""

    code = "MISSING_PAYMENT_METHOD"


class MissingTransactionReferenceError(EngineValidationError):
    """The chosen method requires a transaction reference and none was given."""

    code = "MISSING_TRANSACTION_REFERENCE"


class MissingCodMethodError(EngineValidationError):
    """Part of the total is collected on delivery but no COD method was chosen."""

    code = "MISSING_COD_METHOD"


class AllocationOverflowError(EngineValidationError):
    """An allocation exceeds its invoice's outstanding balance."""

    code = "ALLOCATION_OVERFLOW"

    def __init__(self, invoice_id: int, amount, outstanding):
        self.invoice_id = invoice_id
        self.amount = amount
        self.outstanding = outstanding
        super().__init__(
            f"Allocation {amount} for purchase order {invoice_id} exceeds outstanding balance {outstanding}"
        )


class NoAllocationsError(EngineValidationError):
    """A purchase-order payment has nothing allocated and no default invoice."""

    code = "NO_ALLOCATIONS"
