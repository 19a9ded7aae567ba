"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement, so
that FakeGateway (dev/test) and StripeGateway (production) can be swapped
without changing checkout code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

SUCCEEDED = "succeeded"


class GatewayError(Exception):
    """The gateway could not be reached, timed out or rejected the request."""


@dataclass(frozen=True)
class PaymentIntent:
    """A gateway record of an attempted charge."""

    id: str
    client_secret: str | None
    status: str
    amount: int  # minor units
    currency: str
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name: str = "gateway"

    @abstractmethod
    def create_intent(self, amount: int, currency: str, metadata: dict[str, str]) -> PaymentIntent:
        """Create a payment intent for ``amount`` minor units."""
        ...

    @abstractmethod
    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        """Fetch the current state of a payment intent."""
        ...
