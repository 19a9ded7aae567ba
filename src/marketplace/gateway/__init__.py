"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- StripeGateway for production (``PAYMENT_GATEWAY=stripe``)
"""

from marketplace.config import get_settings
from marketplace.gateway.fake_adapter import FakeGateway
from marketplace.gateway.port import GatewayError, PaymentGateway, PaymentIntent

_current_gateway: PaymentGateway | None = None


def _build_default_gateway() -> PaymentGateway:
    settings = get_settings()
    if settings.payment_gateway == "stripe":
        from marketplace.gateway.stripe_adapter import StripeGateway

        return StripeGateway(api_key=settings.stripe_secret_key, timeout=settings.gateway_timeout)
    return FakeGateway(auto_confirm=settings.fake_auto_confirm)


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, built from settings on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_default_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None


__all__ = [
    "FakeGateway",
    "GatewayError",
    "PaymentGateway",
    "PaymentIntent",
    "get_gateway",
    "reset_gateway",
    "set_gateway",
]
