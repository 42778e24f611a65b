"""Tests for PricingEngine: line amounts, totals, payment plans and fees."""

import pytest
from decimal import Decimal

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
    PaymentMethod,
    PaymentOption,
    FullPayment,
    PartialAdvancePayment,
    NoneUpfrontPayment,
    OrderQuoteRequest,
)
from core.services.pricing_service import PricingEngine


class TestComputeLineAmount:
    """Tests for compute_line_amount()."""

    def test_price_times_quantity_minus_discount(self, pricing):
        assert pricing.compute_line_amount(Decimal("500"), 3, Decimal("100")) == Decimal("1400.00")

    def test_no_discount(self, pricing):
        assert pricing.compute_line_amount(Decimal("250.50"), 2) == Decimal("501.00")

    def test_discount_larger_than_line_clamps_to_zero(self, pricing):
        assert pricing.compute_line_amount(Decimal("100"), 1, Decimal("150")) == Decimal("0.00")

    def test_float_input_is_exact(self, pricing):
        assert pricing.compute_line_amount(0.1, 3) == Decimal("0.30")

    @pytest.mark.parametrize("unit_price,quantity,discount", [
        (Decimal("0"), 1, Decimal("0")),
        (Decimal("19.99"), 7, Decimal("5")),
        (Decimal("1"), 1, Decimal("1000")),
        (Decimal("1234.56"), 12, Decimal("0.01")),
    ])
    def test_never_negative(self, pricing, unit_price, quantity, discount):
        assert pricing.compute_line_amount(unit_price, quantity, discount) >= 0

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, True, "2"])
    def test_rejects_bad_quantity(self, pricing, quantity):
        with pytest.raises(InvalidLineItemError, match="Quantity must be a positive integer"):
            pricing.compute_line_amount(Decimal("10"), quantity)

    def test_rejects_negative_price(self, pricing):
        with pytest.raises(InvalidLineItemError):
            pricing.compute_line_amount(Decimal("-10"), 1)

    def test_rejects_negative_discount(self, pricing):
        with pytest.raises(InvalidLineItemError):
            pricing.compute_line_amount(Decimal("10"), 1, Decimal("-1"))

    def test_rejects_non_numeric_price(self, pricing):
        with pytest.raises(InvalidLineItemError):
            pricing.compute_line_amount("ten", 1)


class TestComputeCartTotals:
    """Tests for compute_cart_totals()."""

    def test_example_cart_with_shipping(self, pricing, sample_items):
        totals = pricing.compute_cart_totals(sample_items, shipping_amount=Decimal("100"))

        assert totals.subtotal == Decimal("1400.00")
        assert totals.line_discount == Decimal("100.00")
        assert totals.vat_amount == Decimal("0.00")
        assert totals.shipping_amount == Decimal("100.00")
        assert totals.grand_total == Decimal("1500.00")

    def test_subtotal_sums_lines(self, pricing):
        items = [
            LineItem(quantity=2, unit_price=Decimal("99.99")),
            LineItem(quantity=1, unit_price=Decimal("0.02"), discount_amount=Decimal("0.01")),
        ]
        totals = pricing.compute_cart_totals(items)
        assert totals.subtotal == Decimal("199.99")
        assert totals.grand_total == totals.subtotal + totals.vat_amount + totals.shipping_amount

    def test_precomputed_amount_is_authoritative(self, pricing):
        items = [LineItem(quantity=2, unit_price=Decimal("100"), amount=Decimal("150"))]
        assert pricing.compute_cart_totals(items).subtotal == Decimal("150.00")

    def test_negative_precomputed_amount_counts_as_zero(self, pricing):
        items = [LineItem(product_id=5, quantity=1, unit_price=Decimal("10"), amount=Decimal("-5"))]
        assert pricing.compute_cart_totals(items).subtotal == Decimal("0.00")

    def test_empty_cart(self, pricing):
        totals = pricing.compute_cart_totals([], shipping_amount=Decimal("60"))
        assert totals.subtotal == Decimal("0.00")
        assert totals.grand_total == Decimal("60.00")

    def test_campaign_discount_is_display_only(self, pricing, sample_items):
        totals = pricing.compute_cart_totals(
            sample_items, campaign_discount=Decimal("200"), shipping_amount=Decimal("100")
        )
        assert totals.campaign_discount == Decimal("200.00")
        assert totals.grand_total == Decimal("1500.00")

    def test_vat_disabled_keeps_rate_but_charges_nothing(self, pricing, sample_items):
        totals = pricing.compute_cart_totals(sample_items, vat_rate=Decimal("15"))
        assert totals.vat_rate == Decimal("15")
        assert totals.vat_amount == Decimal("0.00")
        assert totals.grand_total == Decimal("1400.00")

    def test_vat_enabled_is_additive(self, vat_pricing, sample_items):
        totals = vat_pricing.compute_cart_totals(
            sample_items, vat_rate=Decimal("15"), shipping_amount=Decimal("100")
        )
        assert totals.vat_amount == Decimal("210.00")
        assert totals.grand_total == Decimal("1710.00")

    def test_vat_rounds_half_up(self, vat_pricing):
        items = [LineItem(quantity=1, unit_price=Decimal("333.33"))]
        totals = vat_pricing.compute_cart_totals(items, vat_rate=Decimal("7.5"))
        assert totals.vat_amount == Decimal("25.00")

    def test_default_vat_rate_from_config(self):
        engine = PricingEngine(EngineConfig(vat_enabled=True, default_vat_rate=Decimal("5")))
        totals = engine.compute_cart_totals([LineItem(quantity=1, unit_price=Decimal("1000"))])
        assert totals.vat_rate == Decimal("5")
        assert totals.vat_amount == Decimal("50.00")

    def test_rejects_negative_shipping(self, pricing, sample_items):
        with pytest.raises(EngineValidationError, match="shipping_amount"):
            pricing.compute_cart_totals(sample_items, shipping_amount=Decimal("-1"))

    def test_rejects_negative_vat_rate(self, pricing, sample_items):
        with pytest.raises(EngineValidationError, match="vat_rate"):
            pricing.compute_cart_totals(sample_items, vat_rate=Decimal("-5"))

    def test_does_not_mutate_items(self, pricing, sample_items):
        before = [item.model_dump() for item in sample_items]
        pricing.compute_cart_totals(sample_items, shipping_amount=Decimal("100"))
        assert [item.model_dump() for item in sample_items] == before


class TestComputePaymentPlan:
    """Tests for compute_payment_plan()."""

    def test_full(self, pricing):
        plan = pricing.compute_payment_plan(Decimal("1500"), PaymentOption.FULL)
        assert isinstance(plan, FullPayment)
        assert plan.advance == Decimal("1500.00")
        assert plan.cod == Decimal("0.00")

    def test_partial(self, pricing):
        plan = pricing.compute_payment_plan(Decimal("1500"), "partial", Decimal("500"))
        assert isinstance(plan, PartialAdvancePayment)
        assert plan.advance == Decimal("500.00")
        assert plan.cod == Decimal("1000.00")

    def test_partial_with_string_advance(self, pricing):
        plan = pricing.compute_payment_plan(Decimal("1500"), "partial", "500.50")
        assert plan.advance == Decimal("500.50")
        assert plan.cod == Decimal("999.50")

    def test_none(self, pricing):
        plan = pricing.compute_payment_plan(Decimal("1500"), "none")
        assert isinstance(plan, NoneUpfrontPayment)
        assert plan.advance == Decimal("0.00")
        assert plan.cod == Decimal("1500.00")

    def test_advance_ignored_outside_partial(self, pricing):
        plan = pricing.compute_payment_plan(Decimal("1500"), "full", Decimal("999999"))
        assert plan.advance == Decimal("1500.00")

    @pytest.mark.parametrize("advance", [Decimal("0.01"), Decimal("1499.99")])
    def test_partial_boundaries_accepted(self, pricing, advance):
        plan = pricing.compute_payment_plan(Decimal("1500"), "partial", advance)
        assert plan.advance == advance

    @pytest.mark.parametrize("advance", [Decimal("1500"), Decimal("2000"), Decimal("0"), Decimal("-10"), None, "", "abc"])
    def test_partial_rejects_out_of_range(self, pricing, advance):
        with pytest.raises(InvalidAdvanceAmount):
            pricing.compute_payment_plan(Decimal("1500"), "partial", advance)

    def test_partial_on_zero_total_rejected(self, pricing):
        with pytest.raises(InvalidAdvanceAmount):
            pricing.compute_payment_plan(Decimal("0"), "partial", Decimal("1"))

    def test_unknown_option(self, pricing):
        with pytest.raises(InvalidPaymentOption, match="Valid options"):
            pricing.compute_payment_plan(Decimal("1500"), "later")

    def test_rejects_negative_total(self, pricing):
        with pytest.raises(EngineValidationError):
            pricing.compute_payment_plan(Decimal("-1"), "full")

    @pytest.mark.parametrize("grand_total,option,advance", [
        (Decimal("1500"), "full", None),
        (Decimal("1500"), "partial", Decimal("0.01")),
        (Decimal("999.99"), "partial", Decimal("333.33")),
        (Decimal("1"), "none", None),
        (Decimal("0"), "full", None),
    ])
    def test_plan_reconciles_to_total(self, pricing, grand_total, option, advance):
        plan = pricing.compute_payment_plan(grand_total, option, advance)
        assert plan.advance + plan.cod == plan.grand_total
        assert plan.advance >= 0 and plan.cod >= 0


class TestComputeFeeEstimate:
    """Tests for compute_fee_estimate()."""

    def test_percentage_fee_on_advance(self, pricing, bkash, cash):
        plan = pricing.compute_payment_plan(Decimal("1500"), "partial", Decimal("500"))
        fees = pricing.compute_fee_estimate(plan, bkash, cash)

        assert fees.advance_fee == Decimal("9.25")
        assert fees.cod_fee == Decimal("0.00")
        assert fees.total_fees == Decimal("9.25")

    def test_fixed_plus_percentage(self, pricing, card):
        plan = pricing.compute_payment_plan(Decimal("1000"), "none")
        fees = pricing.compute_fee_estimate(plan, cod_method=card)
        assert fees.cod_fee == Decimal("35.00")

    def test_fee_rounds_half_up(self, pricing, card):
        plan = pricing.compute_payment_plan(Decimal("333.33"), "full")
        fees = pricing.compute_fee_estimate(plan, advance_method=card)
        assert fees.advance_fee == Decimal("18.33")

    def test_fractional_percentage_not_rounded(self, pricing):
        nagad = PaymentMethod.model_validate(
            {"id": 4, "code": "nagad", "name": "Nagad", "type": "mobile_banking", "percentage_fee": "1.125"}
        )
        plan = pricing.compute_payment_plan(Decimal("15000"), "partial", Decimal("10000"))
        fees = pricing.compute_fee_estimate(plan, advance_method=nagad)
        assert fees.advance_fee == Decimal("112.50")

    def test_no_advance_fee_without_advance(self, pricing, card, cash):
        plan = pricing.compute_payment_plan(Decimal("1500"), "none")
        fees = pricing.compute_fee_estimate(plan, card, cash)
        assert fees.advance_fee == Decimal("0.00")

    def test_no_cod_fee_on_full_payment(self, pricing, bkash, card):
        plan = pricing.compute_payment_plan(Decimal("1500"), "full")
        fees = pricing.compute_fee_estimate(plan, bkash, card)
        assert fees.cod_fee == Decimal("0.00")

    def test_no_methods_no_fees(self, pricing):
        plan = pricing.compute_payment_plan(Decimal("1500"), "partial", Decimal("500"))
        fees = pricing.compute_fee_estimate(plan)
        assert fees.total_fees == Decimal("0.00")

    def test_fees_do_not_touch_plan(self, pricing, card):
        plan = pricing.compute_payment_plan(Decimal("1500"), "full")
        pricing.compute_fee_estimate(plan, card)
        assert plan.advance == Decimal("1500.00")


class TestValidatePaymentSelection:
    """Tests for validate_payment_selection()."""

    def test_full_without_method(self, pricing):
        plan = pricing.compute_payment_plan(Decimal("1500"), "full")
        with pytest.raises(MissingPaymentMethodError, match="Please select a payment method"):
            pricing.validate_payment_selection(plan)

    def test_reference_required(self, pricing, bkash):
        plan = pricing.compute_payment_plan(Decimal("1500"), "full")
        with pytest.raises(MissingTransactionReferenceError, match="bKash"):
            pricing.validate_payment_selection(plan, bkash, transaction_reference="   ")

    def test_reference_supplied(self, pricing, bkash):
        plan = pricing.compute_payment_plan(Decimal("1500"), "full")
        pricing.validate_payment_selection(plan, bkash, transaction_reference="8N7A6D5F")

    def test_partial_needs_cod_method(self, pricing, card):
        plan = pricing.compute_payment_plan(Decimal("1500"), "partial", Decimal("500"))
        with pytest.raises(MissingCodMethodError):
            pricing.validate_payment_selection(plan, card)

    def test_none_needs_only_cod_method(self, pricing, cash):
        plan = pricing.compute_payment_plan(Decimal("1500"), "none")
        pricing.validate_payment_selection(plan, cod_method=cash)

    def test_none_without_cod_method(self, pricing):
        plan = pricing.compute_payment_plan(Decimal("1500"), "none")
        with pytest.raises(MissingCodMethodError):
            pricing.validate_payment_selection(plan)

    def test_zero_total_needs_nothing(self, pricing):
        plan = pricing.compute_payment_plan(Decimal("0"), "full")
        pricing.validate_payment_selection(plan)


class TestDefaultPaymentMethods:
    """Tests for default_payment_methods()."""

    def test_prefers_mobile_banking_and_cash(self, payment_methods, bkash, cash):
        assert PricingEngine.default_payment_methods(payment_methods) == (bkash, cash)

    def test_falls_back_to_first_method(self, card):
        assert PricingEngine.default_payment_methods([card]) == (card, None)

    def test_empty(self):
        assert PricingEngine.default_payment_methods([]) == (None, None)

    def test_cash_by_code(self, card):
        counter = PaymentMethod(id=9, code="CASH", name="Counter", type="other")
        advance, cod = PricingEngine.default_payment_methods([card, counter])
        assert advance == card
        assert cod == counter


class TestQuote:
    """Tests for quote() and build_order_amounts()."""

    def test_partial_quote(self, pricing, sample_items, payment_methods, bkash, cash):
        request = OrderQuoteRequest(
            items=sample_items,
            shipping_amount=Decimal("100"),
            payment_option=PaymentOption.PARTIAL,
            advance_amount=Decimal("500"),
            payment_methods=payment_methods,
        )
        quote = pricing.quote(request)

        assert quote.totals.grand_total == Decimal("1500.00")
        assert quote.plan.kind == "partial"
        assert quote.plan.cod == Decimal("1000.00")
        assert quote.advance_method == bkash
        assert quote.cod_method == cash
        assert quote.fees.total_fees == Decimal("9.25")

        amounts = quote.amounts
        assert amounts.subtotal == Decimal("1400.00")
        assert amounts.discount == Decimal("100.00")
        assert amounts.shipping == Decimal("100.00")
        assert amounts.grand_total == Decimal("1500.00")
        assert amounts.advance == Decimal("500.00")
        assert amounts.cod == Decimal("1000.00")
        assert amounts.fees == Decimal("9.25")

    def test_full_quote_drops_cod_method(self, pricing, sample_items, payment_methods):
        quote = pricing.quote(OrderQuoteRequest(items=sample_items, payment_methods=payment_methods))
        assert quote.cod_method is None
        assert quote.advance_method is not None

    def test_none_quote_drops_advance_method(self, pricing, sample_items, payment_methods):
        request = OrderQuoteRequest(items=sample_items, payment_option="none", payment_methods=payment_methods)
        quote = pricing.quote(request)
        assert quote.advance_method is None
        assert quote.fees.advance_fee == Decimal("0.00")

    def test_explicit_method_wins(self, pricing, sample_items, payment_methods, card):
        request = OrderQuoteRequest(items=sample_items, payment_methods=payment_methods, advance_method_id=3)
        quote = pricing.quote(request)
        assert quote.advance_method == card
        assert quote.fees.advance_fee == Decimal("45.00")

    def test_unknown_method_id(self, pricing, sample_items, payment_methods):
        request = OrderQuoteRequest(items=sample_items, payment_methods=payment_methods, advance_method_id=99)
        with pytest.raises(MissingPaymentMethodError, match="99"):
            pricing.quote(request)

    def test_unknown_cod_method_id(self, pricing, sample_items, payment_methods):
        request = OrderQuoteRequest(
            items=sample_items, payment_option="none", payment_methods=payment_methods, cod_method_id=42,
        )
        with pytest.raises(MissingCodMethodError):
            pricing.quote(request)

    def test_invalid_advance_propagates(self, pricing, sample_items):
        request = OrderQuoteRequest(
            items=sample_items,
            shipping_amount=Decimal("100"),
            payment_option="partial",
            advance_amount=Decimal("1500"),
        )
        with pytest.raises(InvalidAdvanceAmount):
            pricing.quote(request)


class TestCheckoutPreview:
    """Tests for checkout_preview()."""

    def test_below_threshold(self, pricing):
        preview = pricing.checkout_preview(Decimal("4000"), Decimal("500"))

        assert preview.discounted_total == Decimal("3500.00")
        assert preview.free_shipping_threshold == Decimal("5000.00")
        assert preview.free_shipping_remaining == Decimal("1500.00")
        assert preview.free_shipping_progress == Decimal("70.00")
        assert preview.qualifies_for_free_shipping is False

    def test_above_threshold(self, pricing):
        preview = pricing.checkout_preview(Decimal("6000"))
        assert preview.free_shipping_remaining == Decimal("0.00")
        assert preview.free_shipping_progress == Decimal("100.00")
        assert preview.qualifies_for_free_shipping is True

    def test_discount_larger_than_subtotal(self, pricing):
        preview = pricing.checkout_preview(Decimal("100"), Decimal("300"))
        assert preview.discounted_total == Decimal("0.00")
        assert preview.free_shipping_progress == Decimal("0.00")

    def test_configured_threshold(self):
        engine = PricingEngine(EngineConfig(free_shipping_threshold=2000))
        preview = engine.checkout_preview(Decimal("2000"))
        assert preview.qualifies_for_free_shipping is True


class TestExtractInclusiveVat:
    """Tests for extract_inclusive_vat()."""

    def test_extracts_from_inclusive_total(self):
        assert PricingEngine.extract_inclusive_vat(Decimal("1150"), Decimal("15")) == Decimal("150.00")

    def test_excludes_shipping(self):
        vat = PricingEngine.extract_inclusive_vat(Decimal("1250"), Decimal("15"), shipping=Decimal("100"))
        assert vat == Decimal("150.00")

    def test_explicit_tax_wins(self):
        vat = PricingEngine.extract_inclusive_vat(Decimal("1150"), Decimal("15"), explicit_vat=Decimal("42"))
        assert vat == Decimal("42.00")

    def test_zero_explicit_tax_falls_back(self):
        vat = PricingEngine.extract_inclusive_vat(Decimal("1150"), Decimal("15"), explicit_vat=Decimal("0"))
        assert vat == Decimal("150.00")

    def test_zero_rate(self):
        assert PricingEngine.extract_inclusive_vat(Decimal("1150"), Decimal("0")) == Decimal("0.00")

    def test_shipping_only_order(self):
        vat = PricingEngine.extract_inclusive_vat(Decimal("100"), Decimal("15"), shipping=Decimal("100"))
        assert vat == Decimal("0.00")
