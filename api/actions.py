"""POST /api/actions: unified computation endpoint."""

from decimal import Decimal

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field, TypeAdapter

from api.base import success_response
from core.models import (
    LineItem,
    PaymentMethod,
    PaymentPlan,
    PaymentType,
    OrderQuoteRequest,
    OutstandingInvoice,
    AllocationSelection,
)


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    handlers = {
        "pricing": PricingHandler(services["pricing"]),
        "allocation": AllocationHandler(services["allocation"]),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        method = getattr(handler, f"_handle_{body.action}", None)
        result = method(body.data)
        request_id = getattr(request.state, "request_id", None)
        return success_response(result, request_id).model_dump(mode="json")

    return router


# =============================================================================
# REQUEST SHAPES
# =============================================================================


class LineAmountData(BaseModel):
    unit_price: Decimal
    quantity: int
    discount_amount: Decimal = Decimal("0")


class CartTotalsData(BaseModel):
    items: list[LineItem]
    campaign_discount: Decimal = Decimal("0")
    vat_rate: Decimal | None = None
    shipping_amount: Decimal = Decimal("0")


class PaymentPlanData(BaseModel):
    grand_total: Decimal
    payment_option: str
    advance_amount: Decimal | str | None = None


class FeeEstimateData(BaseModel):
    plan: PaymentPlan
    advance_method: PaymentMethod | None = None
    cod_method: PaymentMethod | None = None


class CheckoutPreviewData(BaseModel):
    subtotal: Decimal
    discount: Decimal = Decimal("0")


class InclusiveVatData(BaseModel):
    net_amount: Decimal
    vat_rate: Decimal
    shipping: Decimal = Decimal("0")
    explicit_vat: Decimal | None = None


class ClampData(BaseModel):
    invoice: OutstandingInvoice
    proposed_amount: Decimal | str | None = None


class TotalData(BaseModel):
    selections: dict[int, AllocationSelection] = Field(default_factory=dict)


class ValidateAllocationData(BaseModel):
    payment_amount: Decimal
    payment_type: PaymentType = PaymentType.PURCHASE_ORDER
    selections: dict[int, AllocationSelection] = Field(default_factory=dict)
    invoices: list[OutstandingInvoice] | None = None
    default_invoice_id: int | None = None


_PLAN_ADAPTER = TypeAdapter(PaymentPlan)


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class PricingHandler:
    ALLOWED_ACTIONS = {
        "line_amount", "cart_totals", "payment_plan", "fee_estimate",
        "quote", "checkout_preview", "inclusive_vat",
    }

    def __init__(self, engine):
        self.engine = engine

    def _handle_line_amount(self, data: dict):
        req = LineAmountData(**data)
        amount = self.engine.compute_line_amount(req.unit_price, req.quantity, req.discount_amount)
        return {"amount": str(amount)}

    def _handle_cart_totals(self, data: dict):
        req = CartTotalsData(**data)
        totals = self.engine.compute_cart_totals(
            req.items,
            campaign_discount=req.campaign_discount,
            vat_rate=req.vat_rate,
            shipping_amount=req.shipping_amount,
        )
        return totals.model_dump(mode="json")

    def _handle_payment_plan(self, data: dict):
        req = PaymentPlanData(**data)
        plan = self.engine.compute_payment_plan(req.grand_total, req.payment_option, req.advance_amount)
        return _PLAN_ADAPTER.dump_python(plan, mode="json")

    def _handle_fee_estimate(self, data: dict):
        req = FeeEstimateData(**data)
        fees = self.engine.compute_fee_estimate(req.plan, req.advance_method, req.cod_method)
        return fees.model_dump(mode="json")

    def _handle_quote(self, data: dict):
        quote = self.engine.quote(OrderQuoteRequest(**data))
        return quote.model_dump(mode="json")

    def _handle_checkout_preview(self, data: dict):
        req = CheckoutPreviewData(**data)
        return self.engine.checkout_preview(req.subtotal, req.discount).model_dump(mode="json")

    def _handle_inclusive_vat(self, data: dict):
        req = InclusiveVatData(**data)
        vat = self.engine.extract_inclusive_vat(req.net_amount, req.vat_rate, req.shipping, req.explicit_vat)
        return {"vat": str(vat)}


class AllocationHandler:
    ALLOWED_ACTIONS = {"clamp", "total", "validate"}

    def __init__(self, engine):
        self.engine = engine

    def _handle_clamp(self, data: dict):
        req = ClampData(**data)
        amount = self.engine.set_allocation_amount(req.invoice.id, req.proposed_amount, req.invoice)
        return {"invoice_id": req.invoice.id, "amount": str(amount)}

    def _handle_total(self, data: dict):
        req = TotalData(**data)
        return {"total_allocated": str(self.engine.total_allocated(req.selections))}

    def _handle_validate(self, data: dict):
        req = ValidateAllocationData(**data)
        allocations = self.engine.validate_before_submit(
            req.payment_amount,
            req.selections,
            payment_type=req.payment_type,
            invoices=req.invoices,
            default_invoice_id=req.default_invoice_id,
        )
        return {
            "allocations": [a.model_dump(mode="json") for a in allocations],
            "total_allocated": str(self.engine.total_allocated(req.selections)),
            "exceeds_payment_amount": self.engine.exceeds_payment_amount(req.payment_amount, req.selections),
        }
