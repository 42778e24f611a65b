"""
Order checkout service for social-commerce orders.

Wraps the pricing engine with the backend calls around it: payment methods,
campaign discount preview, order creation and the upfront payment. All
validation happens before the first write, so a rejected order leaves nothing
behind on the backend.
"""

import logging

from pydantic import ValidationError

from clients.backoffice_client import BackofficeClient
from core.models import (
    LineItem,
    PaymentMethod,
    PaymentOption,
    DiscountCalculation,
    DiscountCalculationItem,
    CheckoutPreview,
    CustomerInfo,
    OrderQuote,
    PlacedOrder,
)
from core.services.pricing_service import PricingEngine
from utils.money import ZERO, format_money, to_money

logger = logging.getLogger(__name__)

# Payment method type -> keys the backend expects in payment_data
_REFERENCE_KEYS = {
    "mobile_banking": ("transaction_id", "provider"),
    "card": ("card_reference", "payment_method"),
    "bank_transfer": ("transfer_reference", "bank_name"),
}


class OrderCheckoutService:
    """Service for pricing and placing social-commerce orders."""

    def __init__(self, client: BackofficeClient, pricing: PricingEngine):
        self.client = client
        self.pricing = pricing

    def load_payment_methods(self, customer_type: str = "social_commerce") -> list[PaymentMethod]:
        """
        Payment methods available for a customer type.

        Malformed entries are skipped with a warning.
        """
        methods = []
        for raw in self.client.get_payment_methods(customer_type):
            try:
                methods.append(PaymentMethod.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping malformed payment method {raw!r}: {e.error_count()} errors")
        return methods

    def calculate_discount(self, items: list[LineItem]) -> DiscountCalculation:
        """
        Campaign discount for a cart, from the backend.

        Lines without a product id cannot carry a campaign and are not sent.
        """
        request_items = [
            DiscountCalculationItem(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=item.unit_price,
            ).model_dump()
            for item in items
            if item.product_id is not None
        ]
        if not request_items:
            return DiscountCalculation()

        return DiscountCalculation.model_validate(self.client.calculate_discount(request_items))

    def preview(self, items: list[LineItem]) -> CheckoutPreview:
        """Cart sidebar preview using the backend's campaign discount."""
        gross = sum((to_money(item.unit_price) * item.quantity for item in items), ZERO)
        calculation = self.calculate_discount(items)
        return self.pricing.checkout_preview(gross, calculation.total_discount)

    def _payment_notes(self, quote: OrderQuote) -> str:
        symbol = self.pricing.config.currency_symbol
        if quote.plan.kind == PaymentOption.FULL.value:
            return "Full"
        if quote.plan.kind == PaymentOption.PARTIAL.value:
            return (
                f"Advance {format_money(quote.plan.advance, symbol)}"
                f" + COD {format_money(quote.plan.cod, symbol)}"
            )
        return f"Full COD {format_money(quote.plan.cod, symbol)}"

    def _advance_payment_payload(
        self,
        quote: OrderQuote,
        customer: CustomerInfo,
        transaction_reference: str | None,
        notes: str | None,
    ) -> dict:
        method = quote.advance_method
        symbol = self.pricing.config.currency_symbol
        partial = quote.plan.kind == PaymentOption.PARTIAL.value
        reference = (transaction_reference or "").strip()

        if partial:
            default_notes = f"Advance via {method.name}. COD remaining: {format_money(quote.plan.cod, symbol)}"
        else:
            default_notes = f"Social Commerce full payment via {method.name}"

        payload = {
            "payment_method_id": method.id,
            "amount": quote.plan.advance,
            "payment_type": quote.plan.kind,
            "auto_complete": True,
            "notes": notes or default_notes,
        }

        if method.requires_reference and reference:
            payload["transaction_reference"] = reference
            payload["external_reference"] = reference

        keys = _REFERENCE_KEYS.get(method.type)
        if keys and reference:
            reference_key, name_key = keys
            payment_data = {reference_key: reference, name_key: method.name}
            if method.type == "mobile_banking":
                payment_data["mobile_number"] = customer.phone
        elif partial:
            payment_data = {"notes": f"Advance payment - COD remaining: {format_money(quote.plan.cod, symbol)}"}
        else:
            payment_data = {"notes": notes or f"Payment via {method.name}"}

        if partial:
            payment_data["payment_stage"] = "advance"
        payload["payment_data"] = payment_data
        return payload

    def submit(
        self,
        store_id: int,
        customer: CustomerInfo,
        items: list[LineItem],
        quote: OrderQuote,
        transaction_reference: str | None = None,
        notes: str | None = None,
        shipping_address: dict | None = None,
        order_type: str = "social_commerce",
    ) -> PlacedOrder:
        """
        Place an order and collect its upfront payment.

        Args:
            store_id: Store fulfilling the order
            customer: Customer details
            items: Cart lines the quote was computed from
            quote: Result of PricingEngine.quote for these items
            transaction_reference: Gateway reference for the upfront payment
            notes: Optional order/payment notes
            shipping_address: Delivery address as the backend expects it
            order_type: Backend order type

        Returns:
            PlacedOrder with the backend's id and number

        Raises:
            EngineValidationError: If the payment selection is incomplete
                (nothing is sent to the backend)
            BackofficeAPIError: If the backend rejects the order or payment
        """
        self.pricing.validate_payment_selection(
            quote.plan,
            advance_method=quote.advance_method,
            cod_method=quote.cod_method,
            transaction_reference=transaction_reference,
        )

        address = shipping_address or {}
        order_payload = {
            "order_type": order_type,
            "store_id": store_id,
            "store_assignment_mode": "assign_now",
            "customer": customer.model_dump(exclude_none=True),
            "shipping_address": address,
            "delivery_address": address,
            "items": [
                {
                    "product_id": item.product_id,
                    "batch_id": item.batch_id,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "discount_amount": item.discount_amount,
                }
                for item in items
            ],
            "shipping_amount": quote.amounts.shipping,
            "amounts": quote.amounts.model_dump(),
            "notes": f"{notes or 'Social Commerce order.'} Payment: {self._payment_notes(quote)}.",
        }

        order = self.client.create_order(order_payload)
        order_id = order["id"]

        advance_recorded = False
        if quote.plan.advance > 0:
            self.client.record_order_payment(
                order_id,
                self._advance_payment_payload(quote, customer, transaction_reference, notes),
            )
            advance_recorded = True

        logger.info(
            f"Order {order.get('order_number', order_id)} placed: "
            f"advance {quote.plan.advance}, COD {quote.plan.cod}"
        )

        return PlacedOrder(
            order_id=order_id,
            order_number=order.get("order_number"),
            amounts=quote.amounts,
            advance_payment_recorded=advance_recorded,
        )
