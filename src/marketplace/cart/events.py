"""Domain events for the Cart aggregate."""

from protean.fields import Identifier, Integer

from marketplace.domain import marketplace


@marketplace.event(part_of="Cart")
class CartItemAdded:
    """A product was added to the cart, or its quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@marketplace.event(part_of="Cart")
class CartQuantityUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@marketplace.event(part_of="Cart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)


@marketplace.event(part_of="Cart")
class CartCleared:
    """All lines were removed, normally because an order was placed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    lines_removed = Integer(required=True)
