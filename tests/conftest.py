"""Shared test fixtures for the pricing and allocation test suite."""

import pytest
from decimal import Decimal

from core.config import EngineConfig
from core.models import LineItem, PaymentMethod, OutstandingInvoice


# =============================================================================
# ENGINE FIXTURES
# =============================================================================


@pytest.fixture
def config() -> EngineConfig:
    """Default config: VAT disabled, free shipping at 5000."""
    return EngineConfig()


@pytest.fixture
def vat_config() -> EngineConfig:
    """Config with additive VAT switched on."""
    return EngineConfig(vat_enabled=True)


@pytest.fixture
def pricing(config):
    from core.services.pricing_service import PricingEngine

    return PricingEngine(config)


@pytest.fixture
def vat_pricing(vat_config):
    from core.services.pricing_service import PricingEngine

    return PricingEngine(vat_config)


@pytest.fixture
def allocation():
    from core.services.allocation_service import AllocationEngine

    return AllocationEngine()


# =============================================================================
# PAYMENT METHOD FIXTURES
# =============================================================================


@pytest.fixture
def bkash() -> PaymentMethod:
    """Mobile banking, needs a transaction reference, 1.85% fee."""
    return PaymentMethod(
        id=1,
        code="bkash",
        name="bKash",
        type="mobile_banking",
        supports_partial=True,
        requires_reference=True,
        fixed_fee=Decimal("0"),
        percentage_fee=Decimal("1.85"),
    )


@pytest.fixture
def cash() -> PaymentMethod:
    """Cash on delivery, no fees."""
    return PaymentMethod(id=2, code="cash", name="Cash", type="cash")


@pytest.fixture
def card() -> PaymentMethod:
    """Card, fixed 10 + 2.5%, no reference required."""
    return PaymentMethod(
        id=3,
        code="card",
        name="Visa",
        type="card",
        fixed_fee=Decimal("10"),
        percentage_fee=Decimal("2.5"),
    )


@pytest.fixture
def payment_methods(card, bkash, cash) -> list[PaymentMethod]:
    return [card, bkash, cash]


# =============================================================================
# CART & PURCHASE ORDER FIXTURES
# =============================================================================


@pytest.fixture
def sample_items() -> list[LineItem]:
    """One line: 3 x 500 with 100 off -> 1400."""
    return [LineItem(product_id=10, batch_id=501, name="Saree", quantity=3, unit_price=Decimal("500"), discount_amount=Decimal("100"))]


@pytest.fixture
def outstanding() -> list[OutstandingInvoice]:
    """Two purchase orders owing 1000 and 500."""
    return [
        OutstandingInvoice(id=1, po_number="PO-0001", outstanding_amount=Decimal("1000"), status="approved"),
        OutstandingInvoice(id=2, po_number="PO-0002", outstanding_amount=Decimal("500"), status="partially_paid"),
    ]
