"""Marketplace bounded context: carts, coupons, products, orders and payments.

Every aggregate that the checkout commit touches lives in this one domain so
that a single Unit of Work can change them atomically.
"""

from protean.domain import Domain

from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

# Domain Composition Root
marketplace = Domain(name="marketplace")
