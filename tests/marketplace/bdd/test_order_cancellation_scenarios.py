"""BDD tests for seller order status changes and cancellation restocking."""

from marketplace.order.order import Order
from marketplace.order.status import change_order_status
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/order_cancellation.feature")

BUYER = "buyer-001"


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("the buyer has paid for and placed the order")
def buyer_placed_order(context, checkout, paid_intent, shipping_address):
    intent = paid_intent()
    context["order_id"] = checkout.place_order(BUYER, intent.payment_intent_id, shipping_address).order_id


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('seller "{seller}" sets the order status to "{status}"'))
def seller_sets_status(context, error, seller, status):
    try:
        change_order_status(context["order_id"], seller, status)
    except (ValidationError, ObjectNotFoundError) as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(context, status):
    assert current_domain.repository_for(Order).get(context["order_id"]).status == status


@then(parsers.cfparse('the status change is rejected with "{message}"'))
def status_change_rejected(error, message):
    assert isinstance(error["exc"], ValidationError)
    assert message in str(error["exc"])


@then("the order is not found")
def order_not_found(error):
    assert isinstance(error["exc"], ObjectNotFoundError)
