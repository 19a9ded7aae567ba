"""Seller-driven order status changes.

A seller may only act on orders that contain at least one of their items; any
other order is reported as not found. Cancelling returns the acting seller's
items to stock in the same Unit of Work as the status change, under the same
product locks that checkout takes.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.catalogue.product import Product
from marketplace.config import get_settings
from marketplace.domain import marketplace
from marketplace.order.order import Order, OrderStatus
from marketplace.utils.locking import row_locks
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


@marketplace.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    status = String(required=True, max_length=20)


@marketplace.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        order = current_domain.repository_for(Order).get_for_seller(command.order_id, command.seller_id)
        previous = order.status

        changed = order.change_status(command.status, changed_by=command.seller_id)
        if not changed:
            return order

        restored = {}
        if order.status == OrderStatus.CANCELLED.value:
            product_repo = current_domain.repository_for(Product)
            for item in order.items_for_seller(command.seller_id):
                try:
                    product = product_repo.get(item.product_id)
                except ObjectNotFoundError:
                    logger.warning(
                        "restock_skipped_missing_product",
                        order_id=str(order.id),
                        product_id=str(item.product_id),
                    )
                    continue
                product.restock(item.quantity)
                product_repo.add(product)
                restored[str(product.id)] = item.quantity

        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_status_changed",
            order_id=str(order.id),
            seller_id=str(command.seller_id),
            previous_status=previous,
            new_status=order.status,
            restocked=restored,
        )
        return order


def change_order_status(order_id: str, seller_id: str, status: str) -> Order:
    """Change an order's status while holding the locks of the order and the seller's products."""
    order = current_domain.repository_for(Order).get_for_seller(order_id, seller_id)
    keys = [f"order:{order_id}"]
    keys += [f"product:{item.product_id}" for item in order.items_for_seller(seller_id)]

    with row_locks.hold(*keys, timeout=get_settings().lock_timeout):
        return current_domain.process(
            UpdateOrderStatus(order_id=order_id, seller_id=seller_id, status=status),
            asynchronous=False,
        )
