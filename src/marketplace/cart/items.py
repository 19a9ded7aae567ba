"""Cart line management: commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.catalogue.product import Product
from marketplace.domain import marketplace


@marketplace.command(part_of="Cart")
class AddToCart:
    buyer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)


@marketplace.command(part_of="Cart")
class UpdateCartQuantity:
    buyer_id = Identifier(required=True)
    line_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="Cart")
class RemoveFromCart:
    buyer_id = Identifier(required=True)
    line_id = Identifier(required=True)


def _buyer_cart(buyer_id) -> Cart:
    cart = current_domain.repository_for(Cart).find_for_buyer(buyer_id)
    if cart is None:
        raise ObjectNotFoundError(f"No cart for buyer `{buyer_id}`")
    return cart


@marketplace.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        # Raises ObjectNotFoundError for unknown products
        current_domain.repository_for(Product).get(command.product_id)

        repo = current_domain.repository_for(Cart)
        cart = repo.find_for_buyer(command.buyer_id) or Cart.create(buyer_id=command.buyer_id)
        line_id = cart.add_item(product_id=command.product_id, quantity=command.quantity or 1)
        repo.add(cart)
        return line_id

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        cart = _buyer_cart(command.buyer_id)
        cart.update_quantity(line_id=command.line_id, quantity=command.quantity)
        current_domain.repository_for(Cart).add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = _buyer_cart(command.buyer_id)
        cart.remove_item(line_id=command.line_id)
        current_domain.repository_for(Cart).add(cart)
