"""Business-rule failures raised by pricing and checkout.

A failure is one exception type tagged with a ``CheckoutErrorKind``. The
message is safe to show to the buyer; ``context`` carries ids for logs only.
"""

from enum import Enum


class CheckoutErrorKind(Enum):
    EMPTY_CART = "empty_cart"
    PRODUCT_NOT_FOUND = "product_not_found"
    INVALID_COUPON = "invalid_coupon"
    COUPON_EXPIRED = "coupon_expired"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    DUPLICATE_SELLER_COUPON = "duplicate_seller_coupon"
    COUPON_NOT_APPLICABLE = "coupon_not_applicable"
    MINIMUM_ORDER_NOT_MET = "minimum_order_not_met"
    GATEWAY_ERROR = "gateway_error"
    PAYMENT_VERIFICATION_FAILED = "payment_verification_failed"
    PAYMENT_NOT_SUCCEEDED = "payment_not_succeeded"
    PAYMENT_MISMATCH = "payment_mismatch"
    DUPLICATE_PAYMENT = "duplicate_payment"
    INSUFFICIENT_STOCK = "insufficient_stock"
    CART_CHANGED = "cart_changed"
    CHECKOUT_BUSY = "checkout_busy"


# Failures caused by the payment gateway rather than the buyer's input
GATEWAY_KINDS = frozenset(
    {
        CheckoutErrorKind.GATEWAY_ERROR,
        CheckoutErrorKind.PAYMENT_VERIFICATION_FAILED,
    }
)

# Failures the buyer can resolve by retrying the same request
CONFLICT_KINDS = frozenset(
    {
        CheckoutErrorKind.CART_CHANGED,
        CheckoutErrorKind.CHECKOUT_BUSY,
    }
)


class CheckoutError(Exception):
    def __init__(self, kind: CheckoutErrorKind, message: str, **context) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.context = context

    def __repr__(self) -> str:
        return f"CheckoutError({self.kind.name}, {self.message!r})"
