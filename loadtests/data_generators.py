"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the API's Pydantic request schemas
and the domain's validation rules (coupon code charset, address field lengths).
"""

import random
import uuid
from datetime import date, timedelta

from faker import Faker

fake = Faker()


def user_id(prefix: str) -> str:
    """Generate X-User-Id values like 'buyer-lt-a1b2c3d4'."""
    return f"{prefix}-lt-{uuid.uuid4().hex[:8]}"


def product_data(stock_quantity: int | None = None) -> dict:
    return {
        "name": fake.catch_phrase()[:255],
        "price": round(random.uniform(5, 200), 2),
        "stock_quantity": stock_quantity if stock_quantity is not None else random.randint(50, 500),
    }


def coupon_data(discount_type: str | None = None) -> dict:
    """Unique, uppercase-safe code; percentage values stay within 1-50."""
    discount_type = discount_type or random.choice(["fixed", "percentage"])
    return {
        "code": f"LT{uuid.uuid4().hex[:10].upper()}",
        "type": discount_type,
        "value": random.randint(1, 50) if discount_type == "percentage" else round(random.uniform(1, 20), 2),
        "min_order_value": 0,
        "usage_limit": random.choice([None, 10, 100]),
        "expires_at": (date.today() + timedelta(days=random.randint(7, 60))).isoformat(),
    }


def shipping_address() -> dict:
    """Address fields trimmed to the ShippingAddress limits."""
    return {
        "name": fake.name()[:255],
        "phone": f"+1-{random.randint(200, 999)}-{random.randint(200, 999)}-{random.randint(1000, 9999)}",
        "address": fake.street_address()[:1000],
        "city": fake.city()[:100],
    }
