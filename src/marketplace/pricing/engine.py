"""Coupon pricing engine.

Prices a buyer's cart against a list of coupon codes. Each coupon discounts
only the items of the seller that issued it, and at most one coupon per
seller is accepted in a single pricing call.

    subtotal = Σ unit price × quantity
    discount = Σ per-seller coupon discounts
    tax      = (subtotal − discount) × tax rate
    final    = subtotal − discount + tax

All amounts are Decimals quantized to cents. The engine reads products and
coupons but never writes; redemption happens at order placement.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal

from protean.utils.globals import current_domain

from marketplace.catalogue.product import Product
from marketplace.config import get_settings
from marketplace.coupon.coupon import Coupon, normalize_code
from marketplace.shared.errors import CheckoutError, CheckoutErrorKind
from marketplace.shared.money import ZERO, to_money
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    seller_id: str
    product_name: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class CouponApplication:
    """One validated coupon paired with the seller's portion of the cart."""

    coupon_id: str
    code: str
    seller_id: str
    eligible_subtotal: Decimal
    discount: Decimal


@dataclass(frozen=True)
class PricingResult:
    lines: tuple[PricedLine, ...]
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    final_amount: Decimal
    applications: tuple[CouponApplication, ...]

    @property
    def product_ids(self) -> list[str]:
        return [line.product_id for line in self.lines]


@dataclass(frozen=True)
class CouponOption:
    coupon_id: str
    code: str
    discount_type: str
    value: Decimal
    min_order_value: Decimal
    expires_at: date | None
    discount: Decimal


@dataclass(frozen=True)
class SellerCouponOptions:
    seller_id: str
    subtotal: Decimal
    coupons: tuple[CouponOption, ...]


def _utc_today() -> date:
    return datetime.now(UTC).date()


def seller_subtotal(lines: Iterable[PricedLine], seller_id: str) -> Decimal:
    return to_money(sum((line.line_total for line in lines if line.seller_id == str(seller_id)), ZERO))


class CouponPricingEngine:
    def __init__(self, tax_rate: Decimal | None = None, clock: Callable[[], date] | None = None) -> None:
        self.tax_rate = Decimal(str(tax_rate)) if tax_rate is not None else get_settings().tax_rate
        self.clock = clock or _utc_today

    # -------------------------------------------------------------------
    # Cart lines
    # -------------------------------------------------------------------
    def price_lines(self, cart_lines) -> list[PricedLine]:
        """Resolve each cart line's product at its current price.

        ``cart_lines`` is any iterable of objects with ``product_id`` and
        ``quantity`` attributes (cart entities, for instance).
        """
        cart_lines = list(cart_lines)
        if not cart_lines:
            raise CheckoutError(CheckoutErrorKind.EMPTY_CART, "Your cart is empty")

        products = current_domain.repository_for(Product).get_products_by_ids(
            [line.product_id for line in cart_lines]
        )

        priced = []
        for line in cart_lines:
            product = products.get(str(line.product_id))
            if product is None:
                raise CheckoutError(
                    CheckoutErrorKind.PRODUCT_NOT_FOUND,
                    "A product in your cart is no longer available",
                    product_id=str(line.product_id),
                )
            priced.append(
                PricedLine(
                    product_id=str(product.id),
                    seller_id=str(product.seller_id),
                    product_name=product.name,
                    unit_price=product.unit_price,
                    quantity=line.quantity,
                )
            )
        return priced

    # -------------------------------------------------------------------
    # Coupon validation
    # -------------------------------------------------------------------
    def _apply_coupon(self, code: str, lines: list[PricedLine], accepted_sellers: set[str], today: date):
        coupon = current_domain.repository_for(Coupon).find_by_code(code)
        if coupon is None:
            raise CheckoutError(CheckoutErrorKind.INVALID_COUPON, f"Invalid coupon code: {code}", code=code)

        if coupon.is_expired(today):
            raise CheckoutError(
                CheckoutErrorKind.COUPON_EXPIRED, f"Coupon {code} has expired", coupon_id=str(coupon.id)
            )

        if coupon.is_exhausted:
            raise CheckoutError(
                CheckoutErrorKind.USAGE_LIMIT_REACHED,
                f"Coupon {code} has reached its usage limit",
                coupon_id=str(coupon.id),
            )

        seller_id = str(coupon.seller_id)
        if seller_id in accepted_sellers:
            raise CheckoutError(
                CheckoutErrorKind.DUPLICATE_SELLER_COUPON,
                "Only one coupon per seller is allowed",
                seller_id=seller_id,
            )

        eligible = seller_subtotal(lines, seller_id)
        if eligible <= ZERO:
            raise CheckoutError(
                CheckoutErrorKind.COUPON_NOT_APPLICABLE,
                f"Coupon {code} does not apply to any items in your cart",
                coupon_id=str(coupon.id),
            )

        if not coupon.meets_minimum(eligible):
            raise CheckoutError(
                CheckoutErrorKind.MINIMUM_ORDER_NOT_MET,
                f"Coupon {code} requires minimum order value of ${to_money(coupon.min_order_value)}",
                coupon_id=str(coupon.id),
                eligible_subtotal=str(eligible),
            )

        return CouponApplication(
            coupon_id=str(coupon.id),
            code=coupon.code,
            seller_id=seller_id,
            eligible_subtotal=eligible,
            discount=coupon.discount_for(eligible),
        )

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------
    def price_cart(self, cart_lines, coupon_codes: Iterable[str] = ()) -> PricingResult:
        """Price the cart, applying ``coupon_codes`` in the order given.

        The first failing code aborts pricing with its CheckoutError.
        """
        lines = self.price_lines(cart_lines)
        subtotal = to_money(sum((line.line_total for line in lines), ZERO))
        today = self.clock()

        applications: list[CouponApplication] = []
        accepted_sellers: set[str] = set()
        for raw_code in coupon_codes or ():
            code = normalize_code(raw_code)
            if not code:
                continue
            application = self._apply_coupon(code, lines, accepted_sellers, today)
            accepted_sellers.add(application.seller_id)
            applications.append(application)

        discount = to_money(sum((application.discount for application in applications), ZERO))
        discount = min(discount, subtotal)
        tax = to_money((subtotal - discount) * self.tax_rate)
        final_amount = to_money(subtotal - discount + tax)

        logger.debug(
            "cart_priced",
            subtotal=str(subtotal),
            discount=str(discount),
            tax=str(tax),
            final_amount=str(final_amount),
            coupons=[application.code for application in applications],
        )

        return PricingResult(
            lines=tuple(lines),
            subtotal=subtotal,
            discount=discount,
            tax=tax,
            final_amount=final_amount,
            applications=tuple(applications),
        )

    def preview_coupon(self, cart_lines, code: str) -> CouponApplication:
        """Validate a single coupon against the cart and report what it would take off."""
        lines = self.price_lines(cart_lines)
        return self._apply_coupon(normalize_code(code), lines, set(), self.clock())

    def list_available_coupons(self, cart_lines) -> list[SellerCouponOptions]:
        """Active coupons of the sellers in the cart whose minimum order is met, per seller."""
        lines = self.price_lines(cart_lines)
        today = self.clock()

        subtotals: dict[str, Decimal] = {}
        for line in lines:
            subtotals.setdefault(line.seller_id, seller_subtotal(lines, line.seller_id))

        coupons = current_domain.repository_for(Coupon).find_active_for_sellers(subtotals.keys(), today)

        options: dict[str, list[CouponOption]] = {}
        for coupon in coupons:
            seller_id = str(coupon.seller_id)
            eligible = subtotals[seller_id]
            if not coupon.meets_minimum(eligible):
                continue
            options.setdefault(seller_id, []).append(
                CouponOption(
                    coupon_id=str(coupon.id),
                    code=coupon.code,
                    discount_type=coupon.discount_type,
                    value=to_money(coupon.value),
                    min_order_value=to_money(coupon.min_order_value),
                    expires_at=coupon.expires_at,
                    discount=coupon.discount_for(eligible),
                )
            )

        return [
            SellerCouponOptions(seller_id=seller_id, subtotal=subtotals[seller_id], coupons=tuple(seller_options))
            for seller_id, seller_options in options.items()
        ]
