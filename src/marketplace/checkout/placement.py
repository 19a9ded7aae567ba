"""Order placement: the commit phase of checkout.

``PlaceOrder`` turns a paid cart into an order in one Unit of Work: coupon
redemptions, stock decrements, the order with its item snapshots, the payment
record and the emptied cart are all committed together or not at all.

The caller holds the row locks of the payment intent, every product in the
cart and every coupon in the intent metadata while the command runs (see
``marketplace.checkout.orchestrator``). The handler checks everything before
it changes anything, so a failed placement leaves no partial writes behind.
"""

import json
from dataclasses import dataclass
from decimal import Decimal

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.catalogue.product import Product
from marketplace.checkout.metadata import IntentMetadata
from marketplace.coupon.coupon import Coupon
from marketplace.domain import marketplace
from marketplace.order.order import Order, OrderItem, ShippingAddress
from marketplace.payment.payment import Payment
from marketplace.shared.errors import CheckoutError, CheckoutErrorKind
from marketplace.shared.money import ZERO, to_money
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class OrderSummary:
    order_id: str
    payment_id: str
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    final_amount: Decimal


@marketplace.command(part_of="Order")
class PlaceOrder:
    buyer_id = Identifier(required=True)
    payment_intent_id = String(required=True, max_length=255)
    gateway = String(required=True, max_length=50)
    currency = String(max_length=3, default="usd")
    metadata = Text(required=True)  # JSON: gateway metadata of the intent
    shipping_address = Text(required=True)  # JSON: {name, phone, address, city}
    locked_product_ids = Text(required=True)  # JSON: product ids locked by the caller


def ensure_not_already_paid(payment_intent_id: str) -> None:
    existing = current_domain.repository_for(Payment).find_by_transaction_id(payment_intent_id)
    if existing is not None:
        raise CheckoutError(
            CheckoutErrorKind.DUPLICATE_PAYMENT,
            "This payment has already been used to place an order",
            payment_intent_id=payment_intent_id,
            order_id=str(existing.order_id),
        )


def load_buyer_cart(buyer_id) -> Cart:
    cart = current_domain.repository_for(Cart).find_for_buyer(buyer_id)
    if cart is None or cart.is_empty:
        raise CheckoutError(CheckoutErrorKind.EMPTY_CART, "Your cart is empty", buyer_id=str(buyer_id))
    return cart


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        log = logger.bind(buyer_id=str(command.buyer_id), payment_intent_id=command.payment_intent_id)
        try:
            return self._place(command, log)
        except Exception as exc:
            log.error(
                "order_placement_rolled_back",
                error=str(exc),
                error_kind=exc.kind.name if isinstance(exc, CheckoutError) else type(exc).__name__,
                context=getattr(exc, "context", None),
            )
            raise

    def _place(self, command, log):
        ensure_not_already_paid(command.payment_intent_id)

        cart = load_buyer_cart(command.buyer_id)
        locked = set(json.loads(command.locked_product_ids))
        unlocked = cart.product_ids - locked
        if unlocked:
            raise CheckoutError(
                CheckoutErrorKind.CART_CHANGED,
                "Your cart changed while checking out, please review it and try again",
                cart_id=str(cart.id),
                product_ids=sorted(unlocked),
            )

        metadata = IntentMetadata.from_gateway(json.loads(command.metadata))
        shipping_address = ShippingAddress(**json.loads(command.shipping_address))

        # -------------------------------------------------------------------
        # Read and check everything
        # -------------------------------------------------------------------
        product_repo = current_domain.repository_for(Product)
        products = product_repo.get_products_by_ids(cart.product_ids)

        subtotal = ZERO
        for line in cart.lines:
            product = products.get(str(line.product_id))
            if product is None:
                raise CheckoutError(
                    CheckoutErrorKind.PRODUCT_NOT_FOUND,
                    "A product in your cart is no longer available",
                    product_id=str(line.product_id),
                    cart_id=str(cart.id),
                )
            if not product.can_fulfil(line.quantity):
                raise CheckoutError(
                    CheckoutErrorKind.INSUFFICIENT_STOCK,
                    f"Insufficient stock for product '{product.name}'. "
                    f"Available: {product.stock_quantity}, Requested: {line.quantity}",
                    product_id=str(product.id),
                    available=product.stock_quantity,
                    requested=line.quantity,
                )
            subtotal += to_money(product.unit_price * line.quantity)
        subtotal = to_money(subtotal)

        if subtotal != metadata.subtotal:
            log.warning(
                "subtotal_drift",
                priced_subtotal=str(metadata.subtotal),
                current_subtotal=str(subtotal),
                cart_id=str(cart.id),
            )

        discount = min(to_money(metadata.discount_amount), subtotal)
        tax = to_money(metadata.tax_amount)
        final_amount = to_money(subtotal - discount + tax)

        coupon_repo = current_domain.repository_for(Coupon)
        coupons = []
        for applied in metadata.coupons:
            try:
                coupon = coupon_repo.get(applied.coupon_id)
            except ObjectNotFoundError:
                log.warning("applied_coupon_missing", coupon_id=applied.coupon_id, code=applied.code)
                continue
            if coupon.is_exhausted:
                raise CheckoutError(
                    CheckoutErrorKind.USAGE_LIMIT_REACHED,
                    f"Coupon {coupon.code} has reached its usage limit",
                    coupon_id=str(coupon.id),
                )
            coupons.append(coupon)

        # -------------------------------------------------------------------
        # Write
        # -------------------------------------------------------------------
        for coupon in coupons:
            coupon.redeem()
            coupon_repo.add(coupon)

        items = []
        for line in cart.lines:
            product = products[str(line.product_id)]
            product.decrement_stock(line.quantity)
            product_repo.add(product)
            items.append(
                OrderItem(
                    product_id=str(product.id),
                    seller_id=str(product.seller_id),
                    product_name=product.name,
                    quantity=line.quantity,
                    unit_price=product.price,
                )
            )

        order = Order.place(
            buyer_id=command.buyer_id,
            items=items,
            subtotal=subtotal,
            discount_amount=discount,
            tax_amount=tax,
            final_amount=final_amount,
            shipping_address=shipping_address,
            coupon_id=metadata.primary_coupon_id,
        )
        current_domain.repository_for(Order).add(order)

        payment = Payment.record(
            order_id=str(order.id),
            amount=final_amount,
            gateway=command.gateway,
            transaction_id=command.payment_intent_id,
            currency=command.currency or "usd",
        )
        current_domain.repository_for(Payment).add(payment)

        cart.clear()
        current_domain.repository_for(Cart).add(cart)

        log.info(
            "order_placed",
            order_id=str(order.id),
            payment_id=str(payment.id),
            final_amount=str(final_amount),
            coupons=[coupon.code for coupon in coupons],
        )

        return OrderSummary(
            order_id=str(order.id),
            payment_id=str(payment.id),
            subtotal=subtotal,
            discount=discount,
            tax=tax,
            final_amount=final_amount,
        )
