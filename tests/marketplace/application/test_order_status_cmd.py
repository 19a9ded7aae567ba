"""Tests for seller-driven order status changes and cancellation restocking."""

import pytest
from marketplace.catalogue.product import Product
from marketplace.order.order import Order
from marketplace.order.status import change_order_status
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

BUYER = "buyer-001"


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock_quantity


@pytest.fixture()
def placed_order(checkout, make_product, fill_cart, paid_intent, shipping_address):
    """An order with two items from seller-a and one from seller-b."""
    lamp = make_product(seller_id="seller-a", name="Lamp", price=10.0, stock=10)
    bulb = make_product(seller_id="seller-a", name="Bulb", price=2.0, stock=10)
    rug = make_product(seller_id="seller-b", name="Rug", price=30.0, stock=10)
    fill_cart({lamp: 2, bulb: 5, rug: 1})
    intent = paid_intent()
    summary = checkout.place_order(BUYER, intent.payment_intent_id, shipping_address)
    return {"order_id": summary.order_id, "lamp": lamp, "bulb": bulb, "rug": rug}


class TestStatusUpdates:
    def test_seller_ships_order(self, placed_order):
        order = change_order_status(placed_order["order_id"], "seller-a", "shipped")
        assert order.status == "shipped"
        assert current_domain.repository_for(Order).get(placed_order["order_id"]).status == "shipped"

    def test_full_lifecycle(self, placed_order):
        change_order_status(placed_order["order_id"], "seller-a", "shipped")
        order = change_order_status(placed_order["order_id"], "seller-b", "delivered")
        assert order.status == "delivered"

    def test_invalid_transition(self, placed_order):
        with pytest.raises(ValidationError) as exc:
            change_order_status(placed_order["order_id"], "seller-a", "pending")
        assert "Cannot transition from processing to pending" in str(exc.value)

    def test_unknown_status(self, placed_order):
        with pytest.raises(ValidationError) as exc:
            change_order_status(placed_order["order_id"], "seller-a", "teleported")
        assert "Invalid status" in str(exc.value)

    def test_seller_without_items_sees_not_found(self, placed_order):
        with pytest.raises(ObjectNotFoundError):
            change_order_status(placed_order["order_id"], "seller-z", "shipped")

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            change_order_status("no-such-order", "seller-a", "shipped")


class TestCancellation:
    def test_cancel_restocks_only_acting_sellers_items(self, placed_order):
        assert _stock(placed_order["lamp"]) == 8
        assert _stock(placed_order["bulb"]) == 5
        assert _stock(placed_order["rug"]) == 9

        order = change_order_status(placed_order["order_id"], "seller-a", "cancelled")

        assert order.status == "cancelled"
        assert _stock(placed_order["lamp"]) == 10
        assert _stock(placed_order["bulb"]) == 10
        assert _stock(placed_order["rug"]) == 9

    def test_repeated_cancel_restocks_once(self, placed_order):
        change_order_status(placed_order["order_id"], "seller-a", "cancelled")
        change_order_status(placed_order["order_id"], "seller-a", "cancelled")
        assert _stock(placed_order["lamp"]) == 10

    def test_cancelled_is_terminal(self, placed_order):
        change_order_status(placed_order["order_id"], "seller-a", "cancelled")
        with pytest.raises(ValidationError):
            change_order_status(placed_order["order_id"], "seller-a", "shipped")

    def test_delivered_cannot_be_cancelled(self, placed_order):
        change_order_status(placed_order["order_id"], "seller-a", "shipped")
        change_order_status(placed_order["order_id"], "seller-a", "delivered")
        with pytest.raises(ValidationError):
            change_order_status(placed_order["order_id"], "seller-a", "cancelled")
        assert _stock(placed_order["lamp"]) == 8

    def test_cancel_skips_deleted_product(self, placed_order):
        repo = current_domain.repository_for(Product)
        repo._dao.delete(repo.get(placed_order["bulb"]))

        order = change_order_status(placed_order["order_id"], "seller-a", "cancelled")

        assert order.status == "cancelled"
        assert _stock(placed_order["lamp"]) == 10
