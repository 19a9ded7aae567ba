"""Domain events for the Payment aggregate."""

from protean.fields import Float, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Payment")
class PaymentRecorded:
    """A confirmed gateway payment was attached to an order."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Float(required=True)
    currency = String(required=True)
    gateway = String(required=True)
    transaction_id = String(required=True)
