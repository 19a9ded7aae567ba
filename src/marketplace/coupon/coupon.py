"""Coupon aggregate: a seller-issued discount code.

A coupon only ever discounts the items of the seller that issued it. Codes are
stored upper-case and looked up case-insensitively.

Lifecycle:
    active → expired (after ``expires_at``) or exhausted (``usage_count`` reaches
    ``usage_limit``). Neither state is stored; both are derived on read.
"""

import re
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, Float, Identifier, Integer, String

from marketplace.coupon.events import CouponCreated, CouponRedeemed
from marketplace.domain import marketplace
from marketplace.shared.money import ZERO, as_float, to_money

_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class DiscountType(Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


@marketplace.aggregate
class Coupon:
    seller_id = Identifier(required=True)
    code = String(required=True, max_length=50, unique=True)
    discount_type = String(required=True, choices=DiscountType)
    value = Float(required=True, min_value=0.0)
    min_order_value = Float(default=0.0, min_value=0.0)
    usage_limit = Integer(min_value=1)
    usage_count = Integer(default=0, min_value=0)
    expires_at = Date()
    created_at = DateTime()

    @invariant.post
    def code_must_be_well_formed(self):
        if not self.code or not _CODE_PATTERN.match(self.code):
            raise ValidationError({"code": ["Coupon code may only contain letters, numbers, dashes and underscores"]})
        if self.code != self.code.upper():
            raise ValidationError({"code": ["Coupon code must be stored upper-case"]})

    @invariant.post
    def percentage_cannot_exceed_100(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.value is not None and self.value > 100:
            raise ValidationError({"value": ["Percentage discount cannot exceed 100%"]})

    @invariant.post
    def usage_must_stay_within_limit(self):
        if self.usage_limit is not None and (self.usage_count or 0) > self.usage_limit:
            raise ValidationError({"usage_count": ["Coupon usage cannot exceed its usage limit"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        seller_id,
        code,
        discount_type,
        value,
        min_order_value=0,
        usage_limit=None,
        expires_at=None,
        today: date | None = None,
    ):
        today = today or datetime.now(UTC).date()
        if expires_at is not None and expires_at <= today:
            raise ValidationError({"expires_at": ["The expiry date must be a date after today"]})

        coupon = cls(
            seller_id=seller_id,
            code=normalize_code(code),
            discount_type=discount_type,
            value=as_float(value),
            min_order_value=as_float(min_order_value or 0),
            usage_limit=usage_limit,
            usage_count=0,
            expires_at=expires_at,
            created_at=datetime.now(UTC),
        )
        coupon.raise_(
            CouponCreated(
                coupon_id=str(coupon.id),
                seller_id=str(seller_id),
                code=coupon.code,
                discount_type=coupon.discount_type,
                value=coupon.value,
                usage_limit=usage_limit,
                expires_at=expires_at,
            )
        )
        return coupon

    # -------------------------------------------------------------------
    # State queries
    # -------------------------------------------------------------------
    def is_expired(self, today: date) -> bool:
        """A coupon is usable through the end of its expiry date."""
        return self.expires_at is not None and self.expires_at < today

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and (self.usage_count or 0) >= self.usage_limit

    def is_active(self, today: date) -> bool:
        return not self.is_expired(today) and not self.is_exhausted

    def meets_minimum(self, seller_subtotal: Decimal) -> bool:
        return seller_subtotal >= to_money(self.min_order_value)

    def discount_for(self, seller_subtotal: Decimal) -> Decimal:
        """Discount this coupon yields against one seller's subtotal.

        Never more than the subtotal itself, rounded to cents.
        """
        seller_subtotal = to_money(seller_subtotal)
        if seller_subtotal <= ZERO:
            return ZERO

        value = to_money(self.value)
        if self.discount_type == DiscountType.FIXED.value:
            discount = min(value, seller_subtotal)
        else:
            discount = seller_subtotal * Decimal(str(self.value)) / Decimal(100)

        return to_money(min(discount, seller_subtotal))

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def redeem(self):
        """Consume one use of the coupon."""
        if self.is_exhausted:
            raise ValidationError({"usage_count": [f"Coupon {self.code} has reached its usage limit"]})

        self.usage_count = (self.usage_count or 0) + 1
        self.raise_(
            CouponRedeemed(
                coupon_id=str(self.id),
                code=self.code,
                usage_count=self.usage_count,
                usage_limit=self.usage_limit,
            )
        )


@marketplace.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code: str) -> Coupon | None:
        coupons = self._dao.query.filter(code=normalize_code(code)).all().items
        return coupons[0] if coupons else None

    def find_for_seller(self, seller_id) -> list[Coupon]:
        """All coupons issued by a seller, newest first."""
        coupons = self._dao.query.filter(seller_id=str(seller_id)).all().items
        return sorted(
            coupons,
            key=lambda coupon: coupon.created_at or datetime.min.replace(tzinfo=UTC),
            reverse=True,
        )

    def find_active_for_sellers(self, seller_ids, today: date) -> list[Coupon]:
        """Unexpired, not exhausted coupons of any of the given sellers."""
        active = []
        for seller_id in sorted({str(seller_id) for seller_id in seller_ids}):
            active.extend(coupon for coupon in self.find_for_seller(seller_id) if coupon.is_active(today))
        return active
