"""Integration tests for the cart and buyer coupon endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from marketplace.api import cart_router, coupon_router, register_error_handlers

BUYER_HEADERS = {"X-User-Id": "buyer-001"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(cart_router)
    app.include_router(coupon_router)
    register_error_handlers(app)
    return TestClient(app)


def _add(client, product_id, quantity=1):
    response = client.post("/cart/items", json={"product_id": product_id, "quantity": quantity}, headers=BUYER_HEADERS)
    assert response.status_code == 201
    return response.json()["line_id"]


class TestCartEndpoints:
    def test_empty_cart(self, client):
        response = client.get("/cart", headers=BUYER_HEADERS)
        assert response.status_code == 200
        assert response.json() == {"cart_id": None, "items": [], "subtotal": 0.0}

    def test_add_and_view(self, client, make_product):
        product = make_product(name="Lamp", price=12.5)
        _add(client, product, 2)

        body = client.get("/cart", headers=BUYER_HEADERS).json()

        assert body["subtotal"] == 25.0
        assert body["items"][0]["product_name"] == "Lamp"
        assert body["items"][0]["quantity"] == 2

    def test_update_quantity(self, client, make_product):
        line_id = _add(client, make_product(price=10.0))

        response = client.put(f"/cart/items/{line_id}", json={"quantity": 4}, headers=BUYER_HEADERS)

        assert response.status_code == 200
        assert response.json()["subtotal"] == 40.0

    def test_remove(self, client, make_product):
        line_id = _add(client, make_product())

        response = client.delete(f"/cart/items/{line_id}", headers=BUYER_HEADERS)

        assert response.status_code == 200
        assert response.json()["items"] == []

    def test_add_unknown_product(self, client):
        response = client.post("/cart/items", json={"product_id": "nope"}, headers=BUYER_HEADERS)
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Not found"}

    def test_zero_quantity(self, client, make_product):
        response = client.post(
            "/cart/items", json={"product_id": make_product(), "quantity": 0}, headers=BUYER_HEADERS
        )
        assert response.status_code == 422

    def test_unknown_line(self, client, make_product):
        _add(client, make_product())
        response = client.delete("/cart/items/line-unknown", headers=BUYER_HEADERS)
        assert response.status_code == 422
        assert response.json()["errors"]["line_id"] == ["Item not found in cart"]


class TestApplyCouponEndpoint:
    def test_preview_discount(self, client, make_product, make_coupon):
        _add(client, make_product(seller_id="seller-a", price=50.0), 2)
        make_coupon(code="TENOFF", seller_id="seller-a", discount_type="percentage", value=10.0)

        response = client.post("/coupons/apply", json={"code": "tenoff"}, headers=BUYER_HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Coupon applied successfully."
        assert body["coupon"] == {
            "code": "TENOFF",
            "seller_id": "seller-a",
            "discount_amount": 10.0,
            "applicable_subtotal": 100.0,
        }

    def test_minimum_not_met(self, client, make_product, make_coupon):
        _add(client, make_product(price=20.0))
        make_coupon(code="BIGSPEND", min_order_value=100.0)

        response = client.post("/coupons/apply", json={"code": "BIGSPEND"}, headers=BUYER_HEADERS)

        assert response.status_code == 400
        assert response.json()["message"] == "Coupon BIGSPEND requires minimum order value of $100.00"

    def test_empty_cart(self, client):
        response = client.post("/coupons/apply", json={"code": "ANY"}, headers=BUYER_HEADERS)
        assert response.status_code == 400
        assert response.json()["kind"] == "empty_cart"


class TestAvailableCouponsEndpoint:
    def test_grouped_by_seller(self, client, make_product, make_coupon):
        _add(client, make_product(seller_id="seller-a", price=40.0))
        _add(client, make_product(seller_id="seller-b", price=60.0))
        make_coupon(code="A5", seller_id="seller-a", value=5.0)
        make_coupon(code="B10", seller_id="seller-b", discount_type="percentage", value=10.0)

        response = client.get("/coupons/available", headers=BUYER_HEADERS)

        assert response.status_code == 200
        groups = {group["seller_id"]: group for group in response.json()["coupons"]}
        assert groups["seller-a"]["coupons"][0]["discount_amount"] == 5.0
        assert groups["seller-b"]["coupons"][0]["discount_amount"] == 6.0
        assert groups["seller-b"]["subtotal"] == 60.0

    def test_no_cart(self, client):
        response = client.get("/coupons/available", headers=BUYER_HEADERS)
        assert response.json() == {"success": True, "coupons": []}
