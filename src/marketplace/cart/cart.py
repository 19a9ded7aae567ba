"""Cart aggregate: the buyer's mutable selection of products.

One cart per buyer, created on first use. Lines are deleted once an order has
been committed from them.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer

from marketplace.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated
from marketplace.domain import marketplace


@marketplace.entity(part_of="Cart")
class CartLine:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@marketplace.aggregate
class Cart:
    buyer_id = Identifier(required=True, unique=True)
    lines = HasMany(CartLine)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, buyer_id):
        now = datetime.now(UTC)
        return cls(buyer_id=buyer_id, created_at=now, updated_at=now)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def product_ids(self) -> set[str]:
        return {str(line.product_id) for line in self.lines}

    def _line(self, line_id):
        line = next((line for line in self.lines if str(line.id) == str(line_id)), None)
        if line is None:
            raise ValidationError({"line_id": ["Item not found in cart"]})
        return line

    def add_item(self, product_id, quantity=1):
        """Add a product to the cart, or increase its quantity if already present."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = next((line for line in self.lines if str(line.product_id) == str(product_id)), None)

        if existing:
            existing.quantity += quantity
            line_id = str(existing.id)
        else:
            line = CartLine(product_id=product_id, quantity=quantity, added_at=now)
            self.add_lines(line)
            line_id = str(line.id)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                line_id=line_id,
                product_id=str(product_id),
                quantity=quantity,
            )
        )
        return line_id

    def update_quantity(self, line_id, quantity):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        line = self._line(line_id)
        previous_quantity = line.quantity
        line.quantity = quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                line_id=str(line_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def remove_item(self, line_id):
        line = self._line(line_id)
        self.remove_lines(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), line_id=str(line_id)))

    def clear(self):
        """Remove every line from the cart."""
        lines = list(self.lines)
        for line in lines:
            self.remove_lines(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                buyer_id=str(self.buyer_id),
                lines_removed=len(lines),
            )
        )


@marketplace.repository(part_of=Cart)
class CartRepository:
    def find_for_buyer(self, buyer_id) -> Cart | None:
        carts = self._dao.query.filter(buyer_id=str(buyer_id)).all().items
        return carts[0] if carts else None
