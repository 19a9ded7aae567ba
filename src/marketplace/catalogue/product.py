"""Product aggregate: a seller's listing with its price and stock level.

Stock is only ever changed by checkout (decrement), order cancellation and
restocking (increment).
"""

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Float, Identifier, Integer, String

from marketplace.catalogue.events import ProductRegistered, StockDecremented, StockRestored
from marketplace.domain import marketplace
from marketplace.shared.money import as_float, to_money


@marketplace.aggregate
class Product:
    seller_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    stock_quantity = Integer(required=True, min_value=0, default=0)

    @invariant.post
    def stock_must_not_be_negative(self):
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError({"stock_quantity": ["Stock quantity cannot be negative"]})

    @classmethod
    def register(cls, seller_id, name, price, stock_quantity=0):
        product = cls(
            seller_id=seller_id,
            name=name,
            price=as_float(price),
            stock_quantity=stock_quantity,
        )
        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                seller_id=str(seller_id),
                name=name,
                price=product.price,
                stock_quantity=stock_quantity,
            )
        )
        return product

    @property
    def unit_price(self):
        return to_money(self.price)

    def can_fulfil(self, quantity: int) -> bool:
        return self.stock_quantity >= quantity

    def decrement_stock(self, quantity: int) -> None:
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if not self.can_fulfil(quantity):
            raise ValidationError(
                {"stock_quantity": [f"Insufficient stock: {self.stock_quantity} available, {quantity} requested"]}
            )

        self.stock_quantity -= quantity
        self.raise_(
            StockDecremented(
                product_id=str(self.id),
                quantity=quantity,
                remaining=self.stock_quantity,
            )
        )

    def restock(self, quantity: int) -> None:
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        self.stock_quantity += quantity
        self.raise_(
            StockRestored(
                product_id=str(self.id),
                quantity=quantity,
                new_quantity=self.stock_quantity,
            )
        )


@marketplace.repository(part_of=Product)
class ProductRepository:
    def get_products_by_ids(self, product_ids) -> dict:
        """Load the given products keyed by id. Ids that do not resolve are left out."""
        products = {}
        for product_id in {str(product_id) for product_id in product_ids}:
            try:
                products[product_id] = self.get(product_id)
            except ObjectNotFoundError:
                continue
        return products

    def find_for_seller(self, seller_id) -> list:
        return self._dao.query.filter(seller_id=str(seller_id)).all().items
