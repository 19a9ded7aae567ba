"""Application settings read from the environment.

Protean's own configuration (providers, brokers, event processing) lives in
``domain.toml``; these are the checkout-specific knobs.
"""

import os
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Settings:
    tax_rate: Decimal = Decimal("0.10")
    currency: str = "usd"
    payment_gateway: str = "fake"  # fake | stripe
    stripe_secret_key: str | None = None
    gateway_timeout: float = 10.0  # seconds
    lock_timeout: float = 5.0  # seconds
    fake_auto_confirm: bool = False  # fake gateway intents start out paid

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            tax_rate=Decimal(os.getenv("MARKETPLACE_TAX_RATE", "0.10")),
            currency=os.getenv("MARKETPLACE_CURRENCY", "usd").lower(),
            payment_gateway=os.getenv("PAYMENT_GATEWAY", "fake").lower(),
            stripe_secret_key=os.getenv("STRIPE_SECRET_KEY"),
            gateway_timeout=float(os.getenv("PAYMENT_GATEWAY_TIMEOUT", "10")),
            lock_timeout=float(os.getenv("CHECKOUT_LOCK_TIMEOUT", "5")),
            fake_auto_confirm=os.getenv("FAKE_GATEWAY_AUTO_CONFIRM", "").lower() in ("1", "true", "yes"),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process settings, loading them from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def override_settings(settings: Settings) -> None:
    """Replace the active settings (useful for tests)."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    global _settings
    _settings = None
