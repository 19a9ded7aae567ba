"""BDD tests for seller-scoped coupon pricing."""

from marketplace.cart.cart import Cart
from marketplace.pricing.engine import CouponPricingEngine
from marketplace.shared.errors import CheckoutError
from protean import current_domain
from pytest_bdd import parsers, scenarios, when

scenarios("features/coupon_pricing.feature")

BUYER = "buyer-001"


def _price(context, error, codes):
    cart = current_domain.repository_for(Cart).find_for_buyer(BUYER)
    try:
        context["totals"] = CouponPricingEngine().price_cart(cart.lines, codes)
    except CheckoutError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the buyer prices the cart without coupons")
def price_without_coupons(context, error):
    _price(context, error, [])


@when(parsers.cfparse('the buyer prices the cart with coupons "{codes}"'))
def price_with_coupons(context, error, codes):
    _price(context, error, codes.split(","))
