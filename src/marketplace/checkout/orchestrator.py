"""Checkout orchestrator.

Two phases, two requests:

1. ``create_payment_intent``: price the buyer's cart and open a gateway intent
   for the final amount. Nothing is persisted locally.
2. ``place_order``: once the buyer has paid, verify the intent with the
   gateway, take the row locks and dispatch ``PlaceOrder``, which commits the
   order in a single Unit of Work.
"""

import json
from dataclasses import dataclass
from decimal import Decimal

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from marketplace.checkout.metadata import AppliedCoupon, IntentMetadata, MetadataError
from marketplace.checkout.placement import OrderSummary, PlaceOrder, ensure_not_already_paid, load_buyer_cart
from marketplace.config import Settings, get_settings
from marketplace.gateway import get_gateway
from marketplace.gateway.port import GatewayError, PaymentGateway
from marketplace.order.order import ShippingAddress
from marketplace.pricing.engine import CouponPricingEngine
from marketplace.shared.errors import CheckoutError, CheckoutErrorKind
from marketplace.shared.money import to_minor_units, to_money
from marketplace.utils.locking import RowLocks, row_locks
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class IntentSummary:
    payment_intent_id: str
    client_secret: str | None
    amount: Decimal


class Checkout:
    def __init__(
        self,
        gateway: PaymentGateway | None = None,
        pricing: CouponPricingEngine | None = None,
        settings: Settings | None = None,
        locks: RowLocks | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.gateway = gateway or get_gateway()
        self.pricing = pricing or CouponPricingEngine(tax_rate=self.settings.tax_rate)
        self.locks = locks or row_locks

    # -------------------------------------------------------------------
    # Intent phase
    # -------------------------------------------------------------------
    def create_payment_intent(self, buyer_id: str, coupon_codes=()) -> IntentSummary:
        log = logger.bind(buyer_id=str(buyer_id))

        cart = load_buyer_cart(buyer_id)
        pricing = self.pricing.price_cart(cart.lines, coupon_codes)

        metadata = IntentMetadata(
            buyer_id=str(buyer_id),
            cart_id=str(cart.id),
            subtotal=pricing.subtotal,
            discount_amount=pricing.discount,
            tax_amount=pricing.tax,
            coupons=[
                AppliedCoupon(
                    coupon_id=application.coupon_id,
                    code=application.code,
                    seller_id=application.seller_id,
                    discount=application.discount,
                )
                for application in pricing.applications
            ],
        )

        try:
            intent = self.gateway.create_intent(
                amount=to_minor_units(pricing.final_amount),
                currency=self.settings.currency,
                metadata=metadata.to_gateway(),
            )
        except GatewayError as exc:
            log.error(
                "payment_intent_creation_failed",
                cart_id=str(cart.id),
                amount=str(pricing.final_amount),
                error=str(exc),
            )
            raise CheckoutError(
                CheckoutErrorKind.GATEWAY_ERROR,
                "Failed to create payment intent",
                cart_id=str(cart.id),
            ) from exc

        log.info(
            "payment_intent_created",
            payment_intent_id=intent.id,
            cart_id=str(cart.id),
            amount=str(pricing.final_amount),
            coupons=[application.code for application in pricing.applications],
        )
        return IntentSummary(
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
            amount=pricing.final_amount,
        )

    # -------------------------------------------------------------------
    # Commit phase
    # -------------------------------------------------------------------
    def _verify_payment(self, buyer_id: str, payment_intent_id: str) -> IntentMetadata:
        try:
            intent = self.gateway.retrieve_intent(payment_intent_id)
        except GatewayError as exc:
            logger.error(
                "payment_verification_failed",
                buyer_id=str(buyer_id),
                payment_intent_id=payment_intent_id,
                error=str(exc),
            )
            raise CheckoutError(
                CheckoutErrorKind.PAYMENT_VERIFICATION_FAILED,
                "Failed to verify payment",
                payment_intent_id=payment_intent_id,
            ) from exc

        if not intent.succeeded:
            raise CheckoutError(
                CheckoutErrorKind.PAYMENT_NOT_SUCCEEDED,
                "Payment was not successful",
                payment_intent_id=payment_intent_id,
                status=intent.status,
            )

        try:
            metadata = IntentMetadata.from_gateway(intent.metadata)
        except MetadataError as exc:
            logger.warning("payment_metadata_rejected", payment_intent_id=payment_intent_id, error=str(exc))
            raise CheckoutError(
                CheckoutErrorKind.PAYMENT_MISMATCH,
                "This payment does not belong to your checkout",
                payment_intent_id=payment_intent_id,
            ) from exc

        if metadata.buyer_id != str(buyer_id):
            logger.warning(
                "payment_buyer_mismatch",
                payment_intent_id=payment_intent_id,
                buyer_id=str(buyer_id),
                intent_buyer_id=metadata.buyer_id,
            )
            raise CheckoutError(
                CheckoutErrorKind.PAYMENT_MISMATCH,
                "This payment does not belong to your checkout",
                payment_intent_id=payment_intent_id,
            )

        return metadata

    def place_order(self, buyer_id: str, payment_intent_id: str, shipping_address: dict) -> OrderSummary:
        # Raises ValidationError listing every offending field
        address = ShippingAddress(**(shipping_address or {}))

        if not payment_intent_id:
            raise ValidationError({"payment_intent_id": ["is required"]})

        metadata = self._verify_payment(buyer_id, payment_intent_id)

        # A replay must report the duplicate, not the cart emptied by the first placement
        ensure_not_already_paid(payment_intent_id)
        cart = load_buyer_cart(buyer_id)

        product_ids = sorted(cart.product_ids)
        keys = [f"payment:{payment_intent_id}"]
        keys += [f"product:{product_id}" for product_id in product_ids]
        keys += [f"coupon:{coupon_id}" for coupon_id in metadata.coupon_ids]

        command = PlaceOrder(
            buyer_id=str(buyer_id),
            payment_intent_id=payment_intent_id,
            gateway=self.gateway.name,
            currency=self.settings.currency,
            metadata=json.dumps(metadata.to_gateway()),
            shipping_address=json.dumps(address.to_dict()),
            locked_product_ids=json.dumps(product_ids),
        )

        with self.locks.hold(*keys, timeout=self.settings.lock_timeout):
            summary = current_domain.process(command, asynchronous=False)

        logger.info(
            "checkout_completed",
            buyer_id=str(buyer_id),
            order_id=summary.order_id,
            payment_intent_id=payment_intent_id,
            final_amount=str(to_money(summary.final_amount)),
        )
        return summary
