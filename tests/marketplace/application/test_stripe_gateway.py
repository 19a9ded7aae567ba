"""Tests for the Stripe adapter with a stand-in for the Stripe client."""

from types import SimpleNamespace

import pytest
import stripe
from marketplace.gateway.port import GatewayError
from marketplace.gateway.stripe_adapter import StripeGateway


def _stripe_intent(**overrides):
    values = {
        "id": "pi_123",
        "client_secret": "pi_123_secret_abc",
        "status": "requires_payment_method",
        "amount": 9900,
        "currency": "usd",
        "metadata": {"user_id": "buyer-001"},
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class StubPaymentIntents:
    def __init__(self, intent=None, error=None):
        self.intent = intent or _stripe_intent()
        self.error = error
        self.created = []
        self.retrieved = []

    def create(self, params, options=None):
        if self.error:
            raise self.error
        self.created.append(params)
        return self.intent

    def retrieve(self, intent, params=None, options=None):
        if self.error:
            raise self.error
        self.retrieved.append(intent)
        return self.intent


def _gateway(payment_intents):
    client = SimpleNamespace(v1=SimpleNamespace(payment_intents=payment_intents))
    return StripeGateway(api_key="sk_test_123", client=client)


class TestStripeGateway:
    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            StripeGateway(api_key="")

    def test_builds_its_own_client_without_touching_module_state(self, monkeypatch):
        monkeypatch.setattr(stripe, "max_network_retries", 2)
        monkeypatch.setattr(stripe, "default_http_client", None)

        gateway = StripeGateway(api_key="sk_test_123", timeout=3.0)

        assert isinstance(gateway.client, stripe.StripeClient)
        assert stripe.max_network_retries == 2
        assert stripe.default_http_client is None

    def test_create_intent(self):
        payment_intents = StubPaymentIntents()

        intent = _gateway(payment_intents).create_intent(9900, "usd", {"user_id": "buyer-001"})

        assert intent.id == "pi_123"
        assert intent.amount == 9900
        assert intent.metadata == {"user_id": "buyer-001"}
        assert payment_intents.created == [
            {
                "amount": 9900,
                "currency": "usd",
                "metadata": {"user_id": "buyer-001"},
                "automatic_payment_methods": {"enabled": True},
            }
        ]

    def test_retrieve_intent(self):
        payment_intents = StubPaymentIntents(intent=_stripe_intent(status="succeeded"))

        intent = _gateway(payment_intents).retrieve_intent("pi_123")

        assert intent.succeeded
        assert payment_intents.retrieved == ["pi_123"]

    def test_stripe_errors_become_gateway_errors(self):
        gateway = _gateway(StubPaymentIntents(error=stripe.APIConnectionError("Network is unreachable")))

        with pytest.raises(GatewayError):
            gateway.create_intent(100, "usd", {})
        with pytest.raises(GatewayError):
            gateway.retrieve_intent("pi_123")
