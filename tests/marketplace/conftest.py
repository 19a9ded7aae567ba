from datetime import UTC, date, datetime, timedelta

import pytest
from marketplace.cart.items import AddToCart
from marketplace.catalogue.management import RegisterProduct
from marketplace.checkout.orchestrator import Checkout
from marketplace.config import Settings
from marketplace.coupon.coupon import Coupon
from marketplace.gateway import FakeGateway, set_gateway
from marketplace.utils.locking import RowLocks
from protean import current_domain
from protean.integrations.pytest import DomainFixture

BUYER = "buyer-001"
SELLER_A = "seller-a"
SELLER_B = "seller-b"


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
@pytest.fixture()
def fake_gateway():
    gateway = FakeGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture()
def settings():
    return Settings()


@pytest.fixture()
def checkout(fake_gateway, settings):
    return Checkout(gateway=fake_gateway, settings=settings, locks=RowLocks())


# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_product():
    def _make(seller_id=SELLER_A, name="Widget", price=100.0, stock=10):
        return current_domain.process(
            RegisterProduct(seller_id=seller_id, name=name, price=price, stock_quantity=stock),
            asynchronous=False,
        )

    return _make


@pytest.fixture()
def make_coupon():
    """Persist a coupon as-is, including states Coupon.create refuses (expired, exhausted)."""

    def _make(
        code="SAVE10",
        seller_id=SELLER_A,
        discount_type="fixed",
        value=10.0,
        min_order_value=0.0,
        usage_limit=None,
        usage_count=0,
        expires_at=None,
    ):
        coupon = Coupon(
            seller_id=seller_id,
            code=code,
            discount_type=discount_type,
            value=value,
            min_order_value=min_order_value,
            usage_limit=usage_limit,
            usage_count=usage_count,
            expires_at=expires_at or date.today() + timedelta(days=30),
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(Coupon).add(coupon)
        return str(coupon.id)

    return _make


@pytest.fixture()
def fill_cart():
    def _fill(items, buyer_id=BUYER):
        """``items`` maps product id to quantity."""
        for product_id, quantity in items.items():
            current_domain.process(
                AddToCart(buyer_id=buyer_id, product_id=product_id, quantity=quantity),
                asynchronous=False,
            )

    return _fill


@pytest.fixture()
def shipping_address():
    return {
        "name": "Ada Buyer",
        "phone": "+1-555-0100",
        "address": "1 Market Street",
        "city": "Springfield",
    }


@pytest.fixture()
def paid_intent(checkout, fake_gateway):
    """Create an intent for the buyer's cart and mark it paid. Returns the intent summary."""

    def _pay(coupon_codes=(), buyer_id=BUYER):
        intent = checkout.create_payment_intent(buyer_id, list(coupon_codes))
        fake_gateway.confirm(intent.payment_intent_id)
        return intent

    return _pay
