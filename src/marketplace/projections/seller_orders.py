"""Seller orders: one row per (order, seller) covering only that seller's items.

A multi-seller order shows up once for each seller, with the item count,
quantity and subtotal of that seller's share.
"""

import json
from collections import defaultdict

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.events import OrderPlaced, OrderStatusChanged
from marketplace.order.order import Order, OrderStatus
from marketplace.shared.money import ZERO, as_float, to_money


def entry_id(order_id, seller_id) -> str:
    return f"{order_id}:{seller_id}"


@marketplace.projection
class SellerOrders:
    entry_id = String(identifier=True, max_length=255)
    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    status = String(required=True)
    item_count = Integer(default=0)
    quantity = Integer(default=0)
    seller_subtotal = Float(default=0.0)
    placed_at = DateTime()
    updated_at = DateTime()


@marketplace.projector(projector_for=SellerOrders, aggregates=[Order])
class SellerOrdersProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        items = json.loads(event.items) if isinstance(event.items, str) else []
        by_seller = defaultdict(list)
        for item in items:
            by_seller[item["seller_id"]].append(item)

        repo = current_domain.repository_for(SellerOrders)
        for seller_id, seller_items in by_seller.items():
            subtotal = ZERO
            for item in seller_items:
                subtotal += to_money(item["unit_price"]) * item["quantity"]
            repo.add(
                SellerOrders(
                    entry_id=entry_id(event.order_id, seller_id),
                    order_id=event.order_id,
                    seller_id=seller_id,
                    buyer_id=event.buyer_id,
                    status=OrderStatus.PROCESSING.value,
                    item_count=len(seller_items),
                    quantity=sum(item["quantity"] for item in seller_items),
                    seller_subtotal=as_float(to_money(subtotal)),
                    placed_at=event.placed_at,
                    updated_at=event.placed_at,
                )
            )

    @on(OrderStatusChanged)
    def on_order_status_changed(self, event):
        repo = current_domain.repository_for(SellerOrders)
        for row in repo._dao.query.filter(order_id=str(event.order_id)).all().items:
            row.status = event.new_status
            row.updated_at = event.changed_at
            repo.add(row)


def orders_for_seller(seller_id) -> list:
    """Orders containing at least one of the seller's items, latest first."""
    repo = current_domain.repository_for(SellerOrders)
    return repo._dao.query.filter(seller_id=str(seller_id)).order_by("-placed_at").all().items
