"""Domain events for the Coupon aggregate."""

from protean.fields import Date, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Coupon")
class CouponCreated:
    """A seller issued a new discount coupon."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    value = Float(required=True)
    usage_limit = Integer()
    expires_at = Date()


@marketplace.event(part_of="Coupon")
class CouponRedeemed:
    """A coupon was consumed by a placed order."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    usage_count = Integer(required=True)
    usage_limit = Integer()

