"""Checkout load test scenarios.

CheckoutJourney walks one buyer from an empty cart to a placed order across
two sellers, applying one coupon per seller. ScarceStockUser has many buyers
race for the last units of a single product, which must never oversell.

The server must run with ``FAKE_GATEWAY_AUTO_CONFIRM=1`` so that intents
created by the fake gateway count as paid.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import coupon_data, product_data, shipping_address, user_id
from loadtests.helpers.response import error_kind, extract_error_detail
from loadtests.helpers.state import CheckoutState, SellerState


def _list_seller(client, with_coupon: bool = True, stock_quantity: int | None = None) -> SellerState:
    """Register a seller's product (and optionally a coupon) and return their state."""
    seller = SellerState(seller_id=user_id("seller"))
    headers = {"X-User-Id": seller.seller_id}

    resp = client.post("/seller/products", json=product_data(stock_quantity), headers=headers, name="POST /seller/products")
    if resp.status_code == 201:
        seller.product_ids.append(resp.json()["product_id"])

    if with_coupon:
        payload = coupon_data()
        resp = client.post("/seller/coupons", json=payload, headers=headers, name="POST /seller/coupons")
        if resp.status_code == 201:
            seller.coupon_codes.append(resp.json()["coupon"]["code"])
    return seller


class CheckoutJourney(SequentialTaskSet):
    """Add items from two sellers -> Create intent with coupons -> Place order -> View order -> Replay.

    The replay of a used payment intent must be rejected as a duplicate payment.
    """

    def on_start(self):
        self.sellers = [_list_seller(self.client), _list_seller(self.client)]
        self.state = CheckoutState(buyer_id=user_id("buyer"))
        self.headers = {"X-User-Id": self.state.buyer_id}

    @task
    def fill_cart(self):
        for seller in self.sellers:
            for product_id in seller.product_ids:
                with self.client.post(
                    "/cart/items",
                    json={"product_id": product_id, "quantity": random.randint(1, 3)},
                    headers=self.headers,
                    catch_response=True,
                    name="POST /cart/items",
                ) as resp:
                    if resp.status_code == 201:
                        self.state.line_ids.append(resp.json()["line_id"])
                    else:
                        resp.failure(f"Add to cart failed: {resp.status_code}: {extract_error_detail(resp)}")
                        self.interrupt()

    @task
    def create_intent(self):
        self.state.coupon_codes = [code for seller in self.sellers for code in seller.coupon_codes[:1]]
        with self.client.post(
            "/checkout/intent",
            json={"coupon_codes": self.state.coupon_codes},
            headers=self.headers,
            catch_response=True,
            name="POST /checkout/intent",
        ) as resp:
            if resp.status_code == 200:
                self.state.payment_intent_id = resp.json()["data"]["paymentIntentId"]
            elif error_kind(resp) == "usage_limit_reached":
                # Another user exhausted the coupon first; expected under load
                resp.success()
                self.interrupt()
            else:
                resp.failure(f"Create intent failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def place_order(self):
        with self.client.post(
            "/checkout/place-order",
            json={"payment_intent_id": self.state.payment_intent_id, "shipping_address": shipping_address()},
            headers=self.headers,
            catch_response=True,
            name="POST /checkout/place-order",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["data"]["order_id"]
            elif error_kind(resp) in ("usage_limit_reached", "checkout_busy"):
                resp.success()
                self.interrupt()
            else:
                resp.failure(f"Place order failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def view_order(self):
        with self.client.get(
            f"/orders/{self.state.order_id}", headers=self.headers, catch_response=True, name="GET /orders/{id}"
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Order lookup failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def replay_payment(self):
        with self.client.post(
            "/checkout/place-order",
            json={"payment_intent_id": self.state.payment_intent_id, "shipping_address": shipping_address()},
            headers=self.headers,
            catch_response=True,
            name="POST /checkout/place-order [replay]",
        ) as resp:
            if error_kind(resp) == "duplicate_payment":
                resp.success()
            else:
                resp.failure(f"Replay was not rejected: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class CheckoutUser(HttpUser):
    """Buyers completing checkout against freshly listed products."""

    wait_time = between(0.5, 2)
    tasks = [CheckoutJourney]


class ScarceStockUser(HttpUser):
    """Many buyers racing for the same few units.

    Only ``insufficient_stock`` and ``checkout_busy`` count as expected
    failures; any other error, or a 201 after the stock ran out, is a bug.
    """

    wait_time = between(0.1, 0.5)
    scarce_stock = 25
    scarce_product_id: str | None = None
    units_sold = 0

    def on_start(self):
        if ScarceStockUser.scarce_product_id is None:
            seller = _list_seller(self.client, with_coupon=False, stock_quantity=ScarceStockUser.scarce_stock)
            ScarceStockUser.scarce_product_id = seller.product_ids[0] if seller.product_ids else None

    @task
    def buy_last_units(self):
        if ScarceStockUser.scarce_product_id is None:
            return

        headers = {"X-User-Id": user_id("buyer")}
        self.client.post(
            "/cart/items",
            json={"product_id": ScarceStockUser.scarce_product_id, "quantity": 1},
            headers=headers,
            name="[SCARCE] POST /cart/items",
        )
        resp = self.client.post("/checkout/intent", json={}, headers=headers, name="[SCARCE] POST /checkout/intent")
        if resp.status_code != 200:
            return

        with self.client.post(
            "/checkout/place-order",
            json={
                "payment_intent_id": resp.json()["data"]["paymentIntentId"],
                "shipping_address": shipping_address(),
            },
            headers=headers,
            catch_response=True,
            name="[SCARCE] POST /checkout/place-order",
        ) as place:
            if place.status_code == 201:
                ScarceStockUser.units_sold += 1
                if ScarceStockUser.units_sold > ScarceStockUser.scarce_stock:
                    place.failure(
                        f"Oversold: {ScarceStockUser.units_sold} orders for {ScarceStockUser.scarce_stock} units"
                    )
                else:
                    place.success()
            elif error_kind(place) in ("insufficient_stock", "checkout_busy"):
                place.success()
            else:
                place.failure(f"Unexpected: {place.status_code}: {extract_error_detail(place)}")
