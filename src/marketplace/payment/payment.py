"""Payment aggregate: the gateway charge that funded an order.

``transaction_id`` is the gateway's payment intent id. It is unique across
payments so that one intent can never fund two orders.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, String

from marketplace.domain import marketplace
from marketplace.payment.events import PaymentRecorded
from marketplace.shared.money import as_float


class PaymentStatus(Enum):
    SUCCEEDED = "succeeded"
    REFUNDED = "refunded"


@marketplace.aggregate
class Payment:
    order_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="usd")
    gateway = String(required=True, max_length=50)
    transaction_id = String(required=True, max_length=255, unique=True)
    status = String(choices=PaymentStatus, default=PaymentStatus.SUCCEEDED.value)
    created_at = DateTime()

    @classmethod
    def record(cls, order_id, amount, gateway, transaction_id, currency="usd"):
        payment = cls(
            order_id=order_id,
            amount=as_float(amount),
            currency=currency,
            gateway=gateway,
            transaction_id=transaction_id,
            status=PaymentStatus.SUCCEEDED.value,
            created_at=datetime.now(UTC),
        )
        payment.raise_(
            PaymentRecorded(
                payment_id=str(payment.id),
                order_id=str(order_id),
                amount=payment.amount,
                currency=currency,
                gateway=gateway,
                transaction_id=transaction_id,
            )
        )
        return payment


@marketplace.repository(part_of=Payment)
class PaymentRepository:
    def find_by_transaction_id(self, transaction_id: str) -> Payment | None:
        payments = self._dao.query.filter(transaction_id=transaction_id).all().items
        return payments[0] if payments else None
