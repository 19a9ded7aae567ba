"""Product listing management: commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.catalogue.product import Product
from marketplace.domain import marketplace
from marketplace.utils.locking import row_locks


@marketplace.command(part_of="Product")
class RegisterProduct:
    seller_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    stock_quantity = Integer(default=0, min_value=0)


@marketplace.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command_handler(part_of=Product)
class ManageProductsHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        product = Product.register(
            seller_id=command.seller_id,
            name=command.name,
            price=command.price,
            stock_quantity=command.stock_quantity or 0,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(RestockProduct)
    def restock_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        # Another seller's product is reported exactly like a missing one
        if str(product.seller_id) != str(command.seller_id):
            raise ObjectNotFoundError(f"Product with id `{command.product_id}` does not exist")

        product.restock(command.quantity)
        repo.add(product)


def restock_product(product_id: str, seller_id: str, quantity: int) -> None:
    """Restock under the product's row lock so it cannot interleave with a checkout."""
    with row_locks.hold(f"product:{product_id}"):
        current_domain.process(
            RestockProduct(product_id=product_id, seller_id=seller_id, quantity=quantity),
            asynchronous=False,
        )
