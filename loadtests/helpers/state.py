"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state with no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class SellerState:
    """A simulated seller with the products and coupons they listed."""

    seller_id: str | None = None
    product_ids: list[str] = field(default_factory=list)
    coupon_codes: list[str] = field(default_factory=list)


@dataclass
class CheckoutState:
    """Tracks one buyer's cart-to-order journey."""

    buyer_id: str | None = None
    line_ids: list[str] = field(default_factory=list)
    coupon_codes: list[str] = field(default_factory=list)
    payment_intent_id: str | None = None
    order_id: str | None = None
