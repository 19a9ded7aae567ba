"""Tests for the intent phase of checkout: pricing the cart onto a gateway intent."""

import json
from decimal import Decimal

import pytest
from marketplace.checkout.metadata import IntentMetadata
from marketplace.shared.errors import CheckoutError, CheckoutErrorKind

BUYER = "buyer-001"


class TestCreatePaymentIntent:
    def test_amount_is_final_total_in_minor_units(self, checkout, fake_gateway, make_product, make_coupon, fill_cart):
        product = make_product(price=100.0)
        make_coupon(code="SAVE10", value=10.0)
        fill_cart({product: 1})

        intent = checkout.create_payment_intent(BUYER, ["SAVE10"])

        assert intent.amount == Decimal("99.00")
        assert intent.client_secret
        created = fake_gateway.intents[intent.payment_intent_id]
        assert created.amount == 9900
        assert created.currency == "usd"

    def test_metadata_records_pricing(self, checkout, fake_gateway, make_product, make_coupon, fill_cart):
        product = make_product(price=100.0)
        coupon_id = make_coupon(code="SAVE10", value=10.0)
        fill_cart({product: 1})

        intent = checkout.create_payment_intent(BUYER, ["save10"])

        metadata = IntentMetadata.from_gateway(fake_gateway.intents[intent.payment_intent_id].metadata)
        assert metadata.buyer_id == BUYER
        assert metadata.subtotal == Decimal("100.00")
        assert metadata.discount_amount == Decimal("10.00")
        assert metadata.tax_amount == Decimal("9.00")
        assert metadata.coupon_ids == [coupon_id]

    def test_nothing_is_written(self, checkout, make_product, make_coupon, fill_cart):
        from marketplace.catalogue.product import Product
        from marketplace.coupon.coupon import Coupon
        from protean import current_domain

        product = make_product(price=100.0, stock=3)
        coupon_id = make_coupon(code="SAVE10", value=10.0, usage_limit=5)
        fill_cart({product: 2})

        checkout.create_payment_intent(BUYER, ["SAVE10"])

        assert current_domain.repository_for(Product).get(product).stock_quantity == 3
        assert current_domain.repository_for(Coupon).get(coupon_id).usage_count == 0

    def test_empty_cart(self, checkout, fake_gateway):
        with pytest.raises(CheckoutError) as exc:
            checkout.create_payment_intent(BUYER)
        assert exc.value.kind is CheckoutErrorKind.EMPTY_CART
        assert fake_gateway.calls == []

    def test_invalid_coupon_never_reaches_gateway(self, checkout, fake_gateway, make_product, fill_cart):
        fill_cart({make_product(): 1})
        with pytest.raises(CheckoutError) as exc:
            checkout.create_payment_intent(BUYER, ["NOPE"])
        assert exc.value.kind is CheckoutErrorKind.INVALID_COUPON
        assert fake_gateway.calls == []

    def test_gateway_failure(self, checkout, fake_gateway, make_product, fill_cart):
        fill_cart({make_product(): 1})
        fake_gateway.configure(should_succeed=False, failure_reason="connection reset")

        with pytest.raises(CheckoutError) as exc:
            checkout.create_payment_intent(BUYER)

        assert exc.value.kind is CheckoutErrorKind.GATEWAY_ERROR
        assert exc.value.message == "Failed to create payment intent"
        assert "connection reset" not in exc.value.message

    def test_coupons_travel_as_json(self, checkout, fake_gateway, make_product, make_coupon, fill_cart):
        a = make_product(seller_id="seller-a", price=40.0)
        b = make_product(seller_id="seller-b", price=60.0)
        make_coupon(code="A5", seller_id="seller-a", value=5.0)
        make_coupon(code="B5", seller_id="seller-b", value=5.0)
        fill_cart({a: 1, b: 1})

        intent = checkout.create_payment_intent(BUYER, ["A5", "B5"])

        coupons = json.loads(fake_gateway.intents[intent.payment_intent_id].metadata["coupons"])
        assert sorted(c["code"] for c in coupons) == ["A5", "B5"]
