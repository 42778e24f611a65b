"""
Pricing engine for social-commerce orders.

Derives every money field of an order from cart contents and the chosen
payment strategy. Pure: no I/O, inputs are never mutated, the same inputs
always give the same result.
"""

import logging
from decimal import Decimal, InvalidOperation

from core.config import EngineConfig
from core.exceptions import (
    EngineValidationError,
    InvalidLineItemError,
    InvalidAdvanceAmount,
    InvalidPaymentOption,
    MissingPaymentMethodError,
    MissingTransactionReferenceError,
    MissingCodMethodError,
)
from core.models import (
    LineItem,
    PaymentOption,
    PaymentMethod,
    PaymentPlan,
    FullPayment,
    PartialAdvancePayment,
    NoneUpfrontPayment,
    FeeEstimate,
    CartTotals,
    CheckoutPreview,
    OrderAmounts,
    OrderQuoteRequest,
    OrderQuote,
)
from utils.money import ZERO, to_money

logger = logging.getLogger(__name__)

_HUNDRED = Decimal(100)


def _money_arg(value, field: str) -> Decimal:
    """Quantize a caller-supplied amount, rejecting negatives and garbage."""
    try:
        amount = to_money(value)
    except ValueError:
        raise EngineValidationError(f"{field} must be a number, got {value!r}")
    if amount < 0:
        raise EngineValidationError(f"{field} must be >= 0, got {amount}")
    return amount


class PricingEngine:
    """Order pricing, payment split and fee estimation."""

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()

    # =========================================================================
    # LINE ITEMS & TOTALS
    # =========================================================================

    def compute_line_amount(self, unit_price, quantity: int, discount_amount=ZERO) -> Decimal:
        """
        Amount of one cart line: unit_price * quantity - discount_amount.

        Never negative; a discount larger than the line total yields 0.

        Raises:
            InvalidLineItemError: If quantity is not a positive integer or a
                price/discount is negative.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidLineItemError(f"Quantity must be a positive integer, got {quantity!r}")

        try:
            price = to_money(unit_price)
            discount = to_money(discount_amount)
        except ValueError as e:
            raise InvalidLineItemError(str(e))

        if price < 0:
            raise InvalidLineItemError(f"Unit price must be >= 0, got {price}")
        if discount < 0:
            raise InvalidLineItemError(f"Discount must be >= 0, got {discount}")

        return max(ZERO, to_money(price * quantity - discount))

    def _item_amount(self, item: LineItem) -> Decimal:
        # Server-priced lines are authoritative; recomputing would drift on rounding.
        if item.amount is not None:
            amount = to_money(item.amount)
            if amount < 0:
                logger.warning(f"Line for product {item.product_id} has negative amount {amount}, using 0")
                return ZERO
            return amount
        return self.compute_line_amount(item.unit_price, item.quantity, item.discount_amount)

    def compute_cart_totals(
        self,
        items: list[LineItem],
        campaign_discount=ZERO,
        vat_rate=None,
        shipping_amount=ZERO,
    ) -> CartTotals:
        """
        Compute subtotal, VAT and grand total for a cart.

        Args:
            items: Cart lines
            campaign_discount: Aggregate campaign reduction, display only
            vat_rate: VAT percentage; None uses the configured default
            shipping_amount: Delivery charge

        Returns:
            CartTotals with grand_total = subtotal + vat_amount + shipping_amount

        Raises:
            EngineValidationError: If an amount is negative or not a number
        """
        discount = _money_arg(campaign_discount, "campaign_discount")
        shipping = _money_arg(shipping_amount, "shipping_amount")

        if vat_rate is None:
            vat_rate = self.config.default_vat_rate
        try:
            rate = Decimal(str(vat_rate))
        except InvalidOperation:
            raise EngineValidationError(f"vat_rate must be a number, got {vat_rate!r}")
        if not rate.is_finite() or rate < 0:
            raise EngineValidationError(f"vat_rate must be >= 0, got {vat_rate!r}")

        subtotal = sum((self._item_amount(item) for item in items), ZERO)

        # Rate is kept on the totals even while VAT is switched off
        effective_rate = rate if self.config.vat_enabled else Decimal(0)
        vat_amount = to_money(subtotal * effective_rate / _HUNDRED)

        return CartTotals(
            subtotal=subtotal,
            line_discount=sum((to_money(item.discount_amount) for item in items), ZERO),
            campaign_discount=discount,
            vat_rate=rate,
            vat_amount=vat_amount,
            shipping_amount=shipping,
            grand_total=subtotal + vat_amount + shipping,
        )

    # =========================================================================
    # PAYMENT PLAN & FEES
    # =========================================================================

    def compute_payment_plan(self, grand_total, payment_option, advance_input=None) -> PaymentPlan:
        """
        Split a grand total into advance and cash-on-delivery parts.

        Args:
            grand_total: Order grand total
            payment_option: full, partial or none (PaymentOption or str)
            advance_input: Operator-entered advance, only read for partial

        Returns:
            FullPayment, PartialAdvancePayment or NoneUpfrontPayment

        Raises:
            InvalidPaymentOption: If payment_option is not recognised
            InvalidAdvanceAmount: If partial and advance is not in (0, grand_total)
        """
        try:
            option = PaymentOption(payment_option)
        except ValueError:
            raise InvalidPaymentOption(
                f"Unknown payment option {payment_option!r}. "
                f"Valid options: {', '.join(o.value for o in PaymentOption)}"
            )

        total = _money_arg(grand_total, "grand_total")

        if option == PaymentOption.FULL:
            return FullPayment(grand_total=total, advance=total, cod=ZERO)

        if option == PaymentOption.NONE:
            return NoneUpfrontPayment(grand_total=total, advance=ZERO, cod=total)

        if advance_input is None or advance_input == "":
            raise InvalidAdvanceAmount(advance_input, total)
        try:
            advance = to_money(advance_input)
        except ValueError:
            raise InvalidAdvanceAmount(advance_input, total)

        if advance <= 0 or advance >= total:
            raise InvalidAdvanceAmount(advance, total)

        return PartialAdvancePayment(grand_total=total, advance=advance, cod=total - advance)

    @staticmethod
    def _method_fee(method: PaymentMethod, applied: Decimal) -> Decimal:
        return to_money(method.fixed_fee + applied * method.percentage_fee / _HUNDRED)

    def compute_fee_estimate(
        self,
        plan: PaymentPlan,
        advance_method: PaymentMethod | None = None,
        cod_method: PaymentMethod | None = None,
    ) -> FeeEstimate:
        """
        Estimate gateway fees for a payment plan.

        Each fee is fixed_fee + applied * percentage_fee / 100 and only
        applies when its part of the plan is non-zero and a method is chosen.
        Fees are informational and never deducted from the plan.
        """
        advance_fee = ZERO
        if advance_method is not None and plan.advance > 0:
            advance_fee = self._method_fee(advance_method, plan.advance)

        cod_fee = ZERO
        if cod_method is not None and plan.cod > 0:
            cod_fee = self._method_fee(cod_method, plan.cod)

        return FeeEstimate(
            advance_fee=advance_fee,
            cod_fee=cod_fee,
            total_fees=advance_fee + cod_fee,
        )

    def validate_payment_selection(
        self,
        plan: PaymentPlan,
        advance_method: PaymentMethod | None = None,
        cod_method: PaymentMethod | None = None,
        transaction_reference: str | None = None,
    ) -> None:
        """
        Check that the chosen methods can collect the plan.

        Raises:
            MissingPaymentMethodError: Advance due but no method chosen
            MissingTransactionReferenceError: Method needs a reference, none given
            MissingCodMethodError: COD due but no COD method chosen
        """
        if plan.advance > 0:
            if advance_method is None:
                raise MissingPaymentMethodError("Please select a payment method")
            if advance_method.requires_reference and not (transaction_reference or "").strip():
                raise MissingTransactionReferenceError(
                    f"Please enter transaction reference for {advance_method.name}"
                )

        if plan.cod > 0 and cod_method is None:
            raise MissingCodMethodError("Please select a COD payment method")

    @staticmethod
    def default_payment_methods(
        methods: list[PaymentMethod],
    ) -> tuple[PaymentMethod | None, PaymentMethod | None]:
        """
        Pick default methods: mobile banking for advance, cash for COD.

        Falls back to the first method for advance. COD stays None when no
        cash method exists.
        """
        advance = next((m for m in methods if m.type == "mobile_banking"), None)
        if advance is None and methods:
            advance = methods[0]

        cod = next((m for m in methods if m.type == "cash"), None)
        if cod is None:
            cod = next((m for m in methods if (m.code or "").lower() == "cash"), None)

        return advance, cod

    # =========================================================================
    # FINALIZED AMOUNTS
    # =========================================================================

    @staticmethod
    def build_order_amounts(totals: CartTotals, plan: PaymentPlan, fees: FeeEstimate) -> OrderAmounts:
        """Assemble the amounts block submitted with an order."""
        return OrderAmounts(
            subtotal=totals.subtotal,
            discount=totals.line_discount,
            vat=totals.vat_amount,
            shipping=totals.shipping_amount,
            grand_total=totals.grand_total,
            advance=plan.advance,
            cod=plan.cod,
            fees=fees.total_fees,
        )

    def _resolve_methods(self, request: OrderQuoteRequest) -> tuple[PaymentMethod | None, PaymentMethod | None]:
        by_id = {m.id: m for m in request.payment_methods}
        default_advance, default_cod = self.default_payment_methods(request.payment_methods)

        advance = default_advance
        if request.advance_method_id is not None:
            advance = by_id.get(request.advance_method_id)
            if advance is None:
                raise MissingPaymentMethodError(
                    f"Payment method {request.advance_method_id} is not available"
                )

        cod = default_cod
        if request.cod_method_id is not None:
            cod = by_id.get(request.cod_method_id)
            if cod is None:
                raise MissingCodMethodError(f"Payment method {request.cod_method_id} is not available")

        return advance, cod

    def quote(self, request: OrderQuoteRequest) -> OrderQuote:
        """
        Price an order end to end: totals, payment plan, fees, amounts.

        Explicit method ids win over the defaults picked from payment_methods.
        Method presence is not enforced here; validate_payment_selection does
        that at submission time.
        """
        totals = self.compute_cart_totals(
            request.items,
            campaign_discount=request.campaign_discount,
            vat_rate=request.vat_rate,
            shipping_amount=request.shipping_amount,
        )
        plan = self.compute_payment_plan(totals.grand_total, request.payment_option, request.advance_amount)
        advance_method, cod_method = self._resolve_methods(request)
        fees = self.compute_fee_estimate(plan, advance_method, cod_method)

        return OrderQuote(
            totals=totals,
            plan=plan,
            fees=fees,
            amounts=self.build_order_amounts(totals, plan, fees),
            advance_method=advance_method if plan.advance > 0 else None,
            cod_method=cod_method if plan.cod > 0 else None,
        )

    # =========================================================================
    # DISPLAY HELPERS
    # =========================================================================

    def checkout_preview(self, subtotal, discount=ZERO) -> CheckoutPreview:
        """
        Cart sidebar preview with campaign discount and free-shipping progress.

        Unlike compute_cart_totals this subtracts the campaign discount. The
        two figures are separate computations and are not reconciled.
        """
        gross = _money_arg(subtotal, "subtotal")
        reduction = _money_arg(discount, "discount")
        threshold = to_money(self.config.free_shipping_threshold)

        discounted_total = max(ZERO, gross - reduction)
        progress = min(_HUNDRED, discounted_total / threshold * _HUNDRED)

        return CheckoutPreview(
            subtotal=gross,
            discount=reduction,
            discounted_total=discounted_total,
            free_shipping_threshold=threshold,
            free_shipping_remaining=max(ZERO, threshold - discounted_total),
            free_shipping_progress=to_money(progress),
            qualifies_for_free_shipping=discounted_total >= threshold,
        )

    @staticmethod
    def extract_inclusive_vat(net_amount, vat_rate, shipping=ZERO, explicit_vat=None) -> Decimal:
        """
        VAT already embedded in a VAT-inclusive total, for receipts.

        An explicit positive tax figure wins. Otherwise VAT is extracted from
        the net amount minus shipping: base * rate / (100 + rate).
        """
        if explicit_vat is not None:
            explicit = to_money(explicit_vat)
            if explicit > 0:
                return explicit

        rate = Decimal(str(vat_rate))
        base = to_money(net_amount) - max(ZERO, to_money(shipping))
        if base <= 0 or rate <= 0:
            return ZERO

        return to_money(base * rate / (_HUNDRED + rate))
