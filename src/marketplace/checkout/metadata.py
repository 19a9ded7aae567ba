"""Versioned payment intent metadata.

The intent phase stores what it priced on the gateway intent; the commit phase
reads it back. Gateways only accept flat string maps, so the applied coupons
travel as a JSON string.
"""

import json
from decimal import Decimal

from pydantic import BaseModel, ValidationError, field_validator

SCHEMA_VERSION = "checkout.v1"


class MetadataError(ValueError):
    """Intent metadata is missing, malformed or of an unknown version."""


class AppliedCoupon(BaseModel):
    coupon_id: str
    code: str
    seller_id: str
    discount: Decimal


class IntentMetadata(BaseModel):
    schema_version: str = SCHEMA_VERSION
    buyer_id: str
    cart_id: str
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    coupons: list[AppliedCoupon] = []

    @field_validator("schema_version")
    @classmethod
    def must_be_known_version(cls, value: str) -> str:
        if value != SCHEMA_VERSION:
            raise ValueError(f"Unsupported checkout metadata version '{value}'")
        return value

    @property
    def coupon_ids(self) -> list[str]:
        return [coupon.coupon_id for coupon in self.coupons]

    @property
    def primary_coupon_id(self) -> str | None:
        return self.coupons[0].coupon_id if len(self.coupons) == 1 else None

    def to_gateway(self) -> dict[str, str]:
        return {
            "schema": self.schema_version,
            "user_id": self.buyer_id,
            "cart_id": self.cart_id,
            "subtotal": str(self.subtotal),
            "discount_amount": str(self.discount_amount),
            "tax_amount": str(self.tax_amount),
            "coupons": json.dumps([coupon.model_dump(mode="json") for coupon in self.coupons]),
        }

    @classmethod
    def from_gateway(cls, metadata: dict[str, str] | None) -> "IntentMetadata":
        if not metadata or "schema" not in metadata:
            raise MetadataError("Payment intent carries no checkout metadata")

        try:
            return cls(
                schema_version=metadata["schema"],
                buyer_id=metadata.get("user_id"),
                cart_id=metadata.get("cart_id"),
                subtotal=metadata.get("subtotal"),
                discount_amount=metadata.get("discount_amount"),
                tax_amount=metadata.get("tax_amount"),
                coupons=json.loads(metadata.get("coupons") or "[]"),
            )
        except (ValidationError, json.JSONDecodeError, TypeError) as exc:
            raise MetadataError(str(exc)) from exc
