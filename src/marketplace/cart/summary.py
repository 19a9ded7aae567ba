"""Read side of the cart: lines with the product details a buyer needs to see."""

from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.catalogue.product import Product
from marketplace.shared.money import ZERO, to_money


def describe_cart(buyer_id) -> dict:
    cart = current_domain.repository_for(Cart).find_for_buyer(buyer_id)
    if cart is None:
        return {"cart_id": None, "items": [], "subtotal": ZERO}

    products = current_domain.repository_for(Product).get_products_by_ids(cart.product_ids)

    items = []
    subtotal = ZERO
    for line in cart.lines:
        product = products.get(str(line.product_id))
        if product is None:
            # Listed product was removed since it was added; still show the line
            items.append(
                {
                    "line_id": str(line.id),
                    "product_id": str(line.product_id),
                    "quantity": line.quantity,
                    "available": False,
                }
            )
            continue

        line_total = to_money(product.unit_price * line.quantity)
        subtotal += line_total
        items.append(
            {
                "line_id": str(line.id),
                "product_id": str(product.id),
                "seller_id": str(product.seller_id),
                "product_name": product.name,
                "unit_price": product.unit_price,
                "quantity": line.quantity,
                "line_total": line_total,
                "stock_quantity": product.stock_quantity,
                "available": True,
            }
        )

    return {"cart_id": str(cart.id), "items": items, "subtotal": to_money(subtotal)}
