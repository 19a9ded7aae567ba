from marketplace.api.errors import register_error_handlers
from marketplace.api.routes import cart_router, checkout_router, coupon_router, order_router, seller_router

__all__ = ["cart_router", "checkout_router", "coupon_router", "order_router", "seller_router", "register_error_handlers"]
