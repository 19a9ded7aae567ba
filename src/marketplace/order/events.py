"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A paid cart was committed as an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    subtotal = Float(required=True)
    discount_amount = Float(required=True)
    tax_amount = Float(required=True)
    final_amount = Float(required=True)
    item_count = Integer(required=True)
    items = Text()  # JSON list of {product_id, seller_id, quantity, unit_price}
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_by = Identifier()
    changed_at = DateTime(required=True)
