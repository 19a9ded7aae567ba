"""Configurable fake payment gateway for development and testing.

Keeps intents in memory. A new intent starts in ``requires_payment_method``;
``confirm()`` plays the part of the buyer completing payment in the browser.
It can also be told to fail outright, to exercise gateway error handling.
"""

from uuid import uuid4

from marketplace.gateway.port import SUCCEEDED, GatewayError, PaymentGateway, PaymentIntent


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    name = "fake"

    def __init__(self, auto_confirm: bool = False) -> None:
        self.auto_confirm = auto_confirm
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.intents: dict[str, PaymentIntent] = {}
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_intent(self, amount: int, currency: str, metadata: dict[str, str]) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "metadata": dict(metadata),
            }
        )
        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

        intent_id = f"pi_fake_{uuid4().hex[:16]}"
        intent = PaymentIntent(
            id=intent_id,
            client_secret=f"{intent_id}_secret_{uuid4().hex[:8]}",
            status=SUCCEEDED if self.auto_confirm else "requires_payment_method",
            amount=amount,
            currency=currency,
            metadata=dict(metadata),
        )
        self.intents[intent_id] = intent
        return intent

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        self.calls.append({"method": "retrieve_intent", "intent_id": intent_id})
        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

        intent = self.intents.get(intent_id)
        if intent is None:
            raise GatewayError(f"No such payment_intent: '{intent_id}'")
        return intent

    # -------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------
    def confirm(self, intent_id: str, status: str = SUCCEEDED) -> PaymentIntent:
        """Move an intent to ``status`` as if the buyer had completed payment."""
        intent = self.intents[intent_id]
        updated = PaymentIntent(
            id=intent.id,
            client_secret=intent.client_secret,
            status=status,
            amount=intent.amount,
            currency=intent.currency,
            metadata=intent.metadata,
        )
        self.intents[intent_id] = updated
        return updated

    def add_intent(self, intent: PaymentIntent) -> None:
        """Seed an intent directly, e.g. one with hand-crafted metadata."""
        self.intents[intent.id] = intent
