"""Buyer orders: one row per order for a buyer's order history."""

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.events import OrderPlaced, OrderStatusChanged
from marketplace.order.order import Order, OrderStatus


@marketplace.projection
class BuyerOrders:
    order_id = Identifier(identifier=True, required=True)
    buyer_id = Identifier(required=True)
    status = String(required=True)
    item_count = Integer(default=0)
    subtotal = Float()
    discount_amount = Float()
    tax_amount = Float()
    final_amount = Float()
    placed_at = DateTime()
    updated_at = DateTime()


@marketplace.projector(projector_for=BuyerOrders, aggregates=[Order])
class BuyerOrdersProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(BuyerOrders).add(
            BuyerOrders(
                order_id=event.order_id,
                buyer_id=event.buyer_id,
                status=OrderStatus.PROCESSING.value,
                item_count=event.item_count,
                subtotal=event.subtotal,
                discount_amount=event.discount_amount,
                tax_amount=event.tax_amount,
                final_amount=event.final_amount,
                placed_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    @on(OrderStatusChanged)
    def on_order_status_changed(self, event):
        repo = current_domain.repository_for(BuyerOrders)
        row = repo.get(event.order_id)
        row.status = event.new_status
        row.updated_at = event.changed_at
        repo.add(row)


def orders_for_buyer(buyer_id) -> list:
    """The buyer's orders, latest first."""
    repo = current_domain.repository_for(BuyerOrders)
    return repo._dao.query.filter(buyer_id=str(buyer_id)).order_by("-placed_at").all().items
