"""Shared BDD fixtures and step definitions for the Marketplace."""

import pytest
from marketplace.cart.cart import Cart
from marketplace.catalogue.product import Product
from marketplace.coupon.coupon import Coupon
from marketplace.order.order import Order
from marketplace.shared.money import to_money
from protean import current_domain
from pytest_bdd import given, parsers, then

BUYER = "buyer-001"


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def context():
    """Scenario state: product ids by name, intents by buyer, and the latest totals."""
    return {"products": {}, "intents": {}, "totals": None, "order_id": None}


@pytest.fixture()
def error():
    """Container for the failure a When step captured."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('seller "{seller}" lists "{name}" at {price:g} with {stock:d} in stock'))
def seller_lists_product(context, make_product, seller, name, price, stock):
    context["products"][name] = make_product(seller_id=seller, name=name, price=price, stock=stock)


@given(parsers.cfparse('seller "{seller}" offers a {kind} coupon "{code}" worth {value:g}'))
def seller_offers_coupon(make_coupon, seller, kind, code, value):
    make_coupon(code=code, seller_id=seller, discount_type=kind, value=value)


@given(
    parsers.cfparse(
        'seller "{seller}" offers a {kind} coupon "{code}" worth {value:g} with a minimum order of {minimum:g}'
    )
)
def seller_offers_coupon_with_minimum(make_coupon, seller, kind, code, value, minimum):
    make_coupon(code=code, seller_id=seller, discount_type=kind, value=value, min_order_value=minimum)


@given(parsers.cfparse('coupon "{code}" is limited to {limit:d} use'))
def coupon_is_limited(code, limit):
    repo = current_domain.repository_for(Coupon)
    coupon = repo.find_by_code(code)
    coupon.usage_limit = limit
    repo.add(coupon)


@given(parsers.cfparse('the buyer has {quantity:d} "{name}" in the cart'))
def buyer_has_in_cart(context, fill_cart, quantity, name):
    fill_cart({context["products"][name]: quantity})


@given(parsers.cfparse('buyer "{buyer}" has {quantity:d} "{name}" in the cart'))
def other_buyer_has_in_cart(context, fill_cart, buyer, quantity, name):
    fill_cart({context["products"][name]: quantity}, buyer_id=buyer)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the subtotal is {amount:g}"))
def subtotal_is(context, amount):
    assert context["totals"].subtotal == to_money(amount)


@then(parsers.cfparse("the discount is {amount:g}"))
def discount_is(context, amount):
    assert context["totals"].discount == to_money(amount)


@then(parsers.cfparse("the tax is {amount:g}"))
def tax_is(context, amount):
    assert context["totals"].tax == to_money(amount)


@then(parsers.cfparse("the total is {amount:g}"))
def total_is(context, amount):
    assert context["totals"].final_amount == to_money(amount)


@then(parsers.cfparse('the request fails with "{kind}"'))
def request_fails_with(error, kind):
    assert error["exc"] is not None
    assert error["exc"].kind.value == kind


@then(parsers.cfparse('the error message is "{message}"'))
def error_message_is(error, message):
    assert error["exc"].message == message


@then(parsers.cfparse('"{name}" has {stock:d} in stock'))
def product_has_stock(context, name, stock):
    product = current_domain.repository_for(Product).get(context["products"][name])
    assert product.stock_quantity == stock


@then(parsers.cfparse('coupon "{code}" has been used {count:d} times'))
def coupon_used(code, count):
    assert current_domain.repository_for(Coupon).find_by_code(code).usage_count == count


@then("an order is recorded")
def order_recorded():
    assert len(current_domain.repository_for(Order)._dao.query.all().items) == 1


@then("no order is recorded")
def no_order_recorded():
    assert current_domain.repository_for(Order)._dao.query.all().items == []


@then("the buyer's cart is empty")
def buyer_cart_empty():
    assert current_domain.repository_for(Cart).find_for_buyer(BUYER).is_empty


@then(parsers.cfparse("the buyer's cart has {count:d} lines"))
def buyer_cart_has_lines(count):
    assert len(current_domain.repository_for(Cart).find_for_buyer(BUYER).lines) == count
