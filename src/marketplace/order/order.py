"""Order aggregate: the immutable record of a placed checkout.

An order is created in one Unit of Work together with its items, its payment
and the stock decrements. Afterwards only its status changes.

State Machine:
    PENDING → PROCESSING | CANCELLED
    PROCESSING → SHIPPED | CANCELLED
    SHIPPED → DELIVERED | CANCELLED
    DELIVERED, CANCELLED: terminal
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from marketplace.domain import marketplace
from marketplace.order.events import OrderPlaced, OrderStatusChanged
from marketplace.shared.money import as_float, to_money


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class ShippingAddress:
    """Where the order is delivered, captured at checkout time."""

    name = String(required=True, max_length=255)
    phone = String(required=True, max_length=20)
    address = String(required=True, max_length=1000)
    city = String(required=True, max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    """A line of the order. Seller, name and price are snapshots taken at checkout."""

    product_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)

    @property
    def line_total(self):
        return to_money(to_money(self.unit_price) * self.quantity)


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    buyer_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PROCESSING.value)
    subtotal = Float(required=True, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    tax_amount = Float(default=0.0, min_value=0.0)
    final_amount = Float(required=True, min_value=0.0)
    shipping_address = ValueObject(ShippingAddress, required=True)
    coupon_id = Identifier()  # Set only when exactly one coupon was applied
    items = HasMany(OrderItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def place(
        cls,
        buyer_id,
        items,
        subtotal,
        discount_amount,
        tax_amount,
        final_amount,
        shipping_address,
        coupon_id=None,
    ):
        """Create a processing order from the item snapshots of a paid checkout."""
        if not items:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            buyer_id=buyer_id,
            status=OrderStatus.PROCESSING.value,
            subtotal=as_float(subtotal),
            discount_amount=as_float(discount_amount),
            tax_amount=as_float(tax_amount),
            final_amount=as_float(final_amount),
            shipping_address=shipping_address,
            coupon_id=coupon_id,
            created_at=now,
            updated_at=now,
        )
        for item in items:
            order.add_items(item)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                buyer_id=str(buyer_id),
                subtotal=order.subtotal,
                discount_amount=order.discount_amount,
                tax_amount=order.tax_amount,
                final_amount=order.final_amount,
                item_count=len(items),
                items=json.dumps(
                    [
                        {
                            "product_id": str(item.product_id),
                            "seller_id": str(item.seller_id),
                            "quantity": item.quantity,
                            "unit_price": item.unit_price,
                        }
                        for item in items
                    ]
                ),
                placed_at=now,
            )
        )
        return order

    def items_for_seller(self, seller_id) -> list:
        return [item for item in self.items if str(item.seller_id) == str(seller_id)]

    def change_status(self, new_status, changed_by=None) -> bool:
        """Move the order to ``new_status``.

        Returns False when the order already has that status (nothing changes).
        """
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise ValidationError(
                {"status": [f"Invalid status '{new_status}'. Allowed: {', '.join(s.value for s in OrderStatus)}"]}
            ) from None

        current = OrderStatus(self.status)
        if target == current:
            return False

        if target not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                changed_by=str(changed_by) if changed_by else None,
                changed_at=now,
            )
        )
        return True


@marketplace.repository(part_of=Order)
class OrderRepository:
    """Orders as one party to them sees them. Someone else's order does not exist."""

    def get_for_buyer(self, order_id, buyer_id) -> Order:
        order = self.get(order_id)
        if str(order.buyer_id) != str(buyer_id):
            raise ObjectNotFoundError(f"Order with id `{order_id}` does not exist")
        return order

    def get_for_seller(self, order_id, seller_id) -> Order:
        order = self.get(order_id)
        if not order.items_for_seller(seller_id):
            raise ObjectNotFoundError(f"Order with id `{order_id}` does not exist")
        return order
