"""Domain events for the Product aggregate."""

from protean.fields import Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Product")
class ProductRegistered:
    """A seller listed a new product."""

    __version__ = 1

    product_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    name = String(required=True)
    price = Float(required=True)
    stock_quantity = Integer(required=True)


@marketplace.event(part_of="Product")
class StockDecremented:
    """Units of a product were sold."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@marketplace.event(part_of="Product")
class StockRestored:
    """Units of a product were returned to stock (restock or cancellation)."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_quantity = Integer(required=True)
