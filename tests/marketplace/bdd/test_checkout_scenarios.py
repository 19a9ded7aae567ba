"""BDD tests for paying for a cart and placing the order."""

from marketplace.shared.errors import CheckoutError
from pytest_bdd import parsers, scenarios, when

scenarios("features/checkout.feature")

BUYER = "buyer-001"


def _pay(context, paid_intent, buyer_id, codes=()):
    context["intents"][buyer_id] = paid_intent(list(codes), buyer_id=buyer_id)


def _place(context, error, checkout, shipping_address, buyer_id):
    intent = context["intents"][buyer_id]
    try:
        summary = checkout.place_order(buyer_id, intent.payment_intent_id, shipping_address)
    except CheckoutError as exc:
        error["exc"] = exc
        return
    context["totals"] = summary
    context["order_id"] = summary.order_id


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the buyer pays for the cart")
def buyer_pays(context, paid_intent):
    _pay(context, paid_intent, BUYER)


@when(parsers.cfparse('the buyer pays for the cart with coupons "{codes}"'))
def buyer_pays_with_coupons(context, paid_intent, codes):
    _pay(context, paid_intent, BUYER, codes.split(","))


@when(parsers.cfparse('buyer "{buyer}" pays for the cart with coupons "{codes}"'))
def other_buyer_pays_with_coupons(context, paid_intent, buyer, codes):
    _pay(context, paid_intent, buyer, codes.split(","))


@when("the buyer starts checkout without paying")
def buyer_starts_checkout(context, checkout):
    context["intents"][BUYER] = checkout.create_payment_intent(BUYER)


@when("the buyer places the order")
def buyer_places_order(context, error, checkout, shipping_address):
    _place(context, error, checkout, shipping_address, BUYER)


@when("the buyer places the order again")
def buyer_places_order_again(context, error, checkout, shipping_address):
    _place(context, error, checkout, shipping_address, BUYER)


@when(parsers.cfparse('buyer "{buyer}" places the order'))
def other_buyer_places_order(context, error, checkout, shipping_address, buyer):
    _place(context, error, checkout, shipping_address, buyer)
