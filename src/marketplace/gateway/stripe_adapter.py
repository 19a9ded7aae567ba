"""Stripe payment gateway adapter (stripe-python SDK).

Each adapter owns a ``stripe.StripeClient`` built from the API key and
timeout passed in at construction; nothing is set on the ``stripe`` module.
Network retries are disabled; the caller decides whether to retry.
"""

import stripe

from marketplace.gateway.port import GatewayError, PaymentGateway, PaymentIntent
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    name = "stripe"

    def __init__(self, api_key: str, timeout: float = 10.0, client: stripe.StripeClient | None = None) -> None:
        if not api_key:
            raise ValueError("StripeGateway requires an API key (STRIPE_SECRET_KEY)")
        self.timeout = timeout
        self.client = client or stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(timeout=timeout),
            max_network_retries=0,
        )

    @staticmethod
    def _to_intent(intent) -> PaymentIntent:
        return PaymentIntent(
            id=intent.id,
            client_secret=intent.client_secret,
            status=intent.status,
            amount=intent.amount,
            currency=intent.currency,
            metadata={key: str(value) for key, value in (intent.metadata or {}).items()},
        )

    def create_intent(self, amount: int, currency: str, metadata: dict[str, str]) -> PaymentIntent:
        try:
            intent = self.client.v1.payment_intents.create(
                params={
                    "amount": amount,
                    "currency": currency,
                    "metadata": metadata,
                    "automatic_payment_methods": {"enabled": True},
                }
            )
        except stripe.StripeError as exc:
            logger.error("stripe_create_intent_failed", amount=amount, currency=currency, error=str(exc))
            raise GatewayError(str(exc)) from exc
        return self._to_intent(intent)

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        try:
            intent = self.client.v1.payment_intents.retrieve(intent_id)
        except stripe.StripeError as exc:
            logger.error("stripe_retrieve_intent_failed", intent_id=intent_id, error=str(exc))
            raise GatewayError(str(exc)) from exc
        return self._to_intent(intent)
