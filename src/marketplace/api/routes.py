"""FastAPI routes for the Marketplace: checkout, cart, coupons, orders and seller tools.

The caller's identity arrives in the ``X-User-Id`` header, set by the upstream
authentication gateway. Seller routes treat it as the seller id.
"""

from fastapi import APIRouter, Depends, Header, HTTPException
from protean.utils.globals import current_domain

from marketplace.api.schemas import (
    AddToCartRequest,
    AppliedCouponData,
    ApplyCouponRequest,
    ApplyCouponResponse,
    AvailableCouponsResponse,
    BuyerOrderListResponse,
    BuyerOrderResponse,
    BuyerOrderSummary,
    CartLineIdResponse,
    CartResponse,
    CouponCreatedResponse,
    CouponListResponse,
    CouponOptionResponse,
    CouponResponse,
    CreateCouponRequest,
    CreateIntentRequest,
    IntentData,
    IntentResponse,
    MessageResponse,
    OrderItemResponse,
    OrderResponse,
    OrderStatusResponse,
    PlacedOrderData,
    PlacedOrderResponse,
    PlaceOrderRequest,
    ProductIdResponse,
    RegisterProductRequest,
    RestockProductRequest,
    SellerCouponsResponse,
    SellerOrderListResponse,
    SellerOrderResponse,
    SellerOrderSummary,
    ShippingAddressSchema,
    UpdateCartQuantityRequest,
    UpdateOrderStatusRequest,
)
from marketplace.cart.cart import Cart
from marketplace.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from marketplace.cart.summary import describe_cart
from marketplace.catalogue.management import RegisterProduct, restock_product
from marketplace.checkout.orchestrator import Checkout
from marketplace.checkout.placement import load_buyer_cart
from marketplace.coupon.coupon import Coupon
from marketplace.coupon.management import CreateCoupon, DeleteCoupon
from marketplace.order.order import Order
from marketplace.order.status import change_order_status
from marketplace.pricing.engine import CouponPricingEngine
from marketplace.projections.buyer_orders import orders_for_buyer
from marketplace.projections.seller_orders import orders_for_seller


def current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthenticated")
    return x_user_id


def _coupon_response(coupon: Coupon) -> CouponResponse:
    return CouponResponse(
        id=str(coupon.id),
        code=coupon.code,
        type=coupon.discount_type,
        value=coupon.value,
        min_order_value=coupon.min_order_value or 0.0,
        usage_limit=coupon.usage_limit,
        usage_count=coupon.usage_count or 0,
        expires_at=coupon.expires_at,
    )


def _order_response(order, items=None) -> OrderResponse:
    """Order as JSON. ``items`` narrows the lines shown, e.g. to one seller's share."""
    address = order.shipping_address
    return OrderResponse(
        id=str(order.id),
        buyer_id=str(order.buyer_id),
        status=order.status,
        subtotal=order.subtotal,
        discount_amount=order.discount_amount or 0.0,
        tax_amount=order.tax_amount or 0.0,
        final_amount=order.final_amount,
        shipping_address=ShippingAddressSchema(**address.to_dict()) if address else None,
        placed_at=order.created_at,
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                seller_id=str(item.seller_id),
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for item in (order.items if items is None else items)
        ],
    )


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


# Checkout routes are sync: gateway round-trips and row locks block, so they
# run in the threadpool instead of on the event loop.
@checkout_router.post("/intent", response_model=IntentResponse)
def create_payment_intent(body: CreateIntentRequest, buyer_id: str = Depends(current_user_id)) -> IntentResponse:
    intent = Checkout().create_payment_intent(buyer_id, body.coupon_codes)
    return IntentResponse(
        data=IntentData(
            client_secret=intent.client_secret,
            amount=float(intent.amount),
            payment_intent_id=intent.payment_intent_id,
        )
    )


@checkout_router.post("/place-order", status_code=201, response_model=PlacedOrderResponse)
def place_order(body: PlaceOrderRequest, buyer_id: str = Depends(current_user_id)) -> PlacedOrderResponse:
    summary = Checkout().place_order(
        buyer_id=buyer_id,
        payment_intent_id=body.payment_intent_id,
        shipping_address=body.shipping_address.model_dump(),
    )
    return PlacedOrderResponse(
        data=PlacedOrderData(
            order_id=summary.order_id,
            total_amount=float(summary.subtotal),
            discount_amount=float(summary.discount),
            tax_amount=float(summary.tax),
            final_amount=float(summary.final_amount),
        )
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(buyer_id: str = Depends(current_user_id)) -> CartResponse:
    return CartResponse(**describe_cart(buyer_id))


@cart_router.post("/items", status_code=201, response_model=CartLineIdResponse)
async def add_to_cart(body: AddToCartRequest, buyer_id: str = Depends(current_user_id)) -> CartLineIdResponse:
    command = AddToCart(buyer_id=buyer_id, product_id=body.product_id, quantity=body.quantity)
    line_id = current_domain.process(command, asynchronous=False)
    return CartLineIdResponse(line_id=line_id)


@cart_router.put("/items/{line_id}", response_model=CartResponse)
async def update_cart_quantity(
    line_id: str, body: UpdateCartQuantityRequest, buyer_id: str = Depends(current_user_id)
) -> CartResponse:
    command = UpdateCartQuantity(buyer_id=buyer_id, line_id=line_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return CartResponse(**describe_cart(buyer_id))


@cart_router.delete("/items/{line_id}", response_model=CartResponse)
async def remove_from_cart(line_id: str, buyer_id: str = Depends(current_user_id)) -> CartResponse:
    current_domain.process(RemoveFromCart(buyer_id=buyer_id, line_id=line_id), asynchronous=False)
    return CartResponse(**describe_cart(buyer_id))


# ---------------------------------------------------------------------------
# Coupon Router (buyer)
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.get("/available", response_model=AvailableCouponsResponse)
async def available_coupons(buyer_id: str = Depends(current_user_id)) -> AvailableCouponsResponse:
    cart = current_domain.repository_for(Cart).find_for_buyer(buyer_id)
    if cart is None or cart.is_empty:
        return AvailableCouponsResponse(coupons=[])

    options = CouponPricingEngine().list_available_coupons(cart.lines)
    return AvailableCouponsResponse(
        coupons=[
            SellerCouponsResponse(
                seller_id=seller.seller_id,
                subtotal=float(seller.subtotal),
                coupons=[
                    CouponOptionResponse(
                        id=option.coupon_id,
                        code=option.code,
                        type=option.discount_type,
                        value=float(option.value),
                        min_order_value=float(option.min_order_value),
                        expires_at=option.expires_at,
                        discount_amount=float(option.discount),
                    )
                    for option in seller.coupons
                ],
            )
            for seller in options
        ]
    )


@coupon_router.post("/apply", response_model=ApplyCouponResponse)
async def apply_coupon(body: ApplyCouponRequest, buyer_id: str = Depends(current_user_id)) -> ApplyCouponResponse:
    cart = load_buyer_cart(buyer_id)
    application = CouponPricingEngine().preview_coupon(cart.lines, body.code)
    return ApplyCouponResponse(
        coupon=AppliedCouponData(
            code=application.code,
            seller_id=application.seller_id,
            discount_amount=float(application.discount),
            applicable_subtotal=float(application.eligible_subtotal),
        )
    )


# ---------------------------------------------------------------------------
# Order Router (buyer)
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=BuyerOrderListResponse)
async def list_orders(buyer_id: str = Depends(current_user_id)) -> BuyerOrderListResponse:
    return BuyerOrderListResponse(
        data=[
            BuyerOrderSummary(
                id=str(row.order_id),
                status=row.status,
                item_count=row.item_count or 0,
                subtotal=row.subtotal or 0.0,
                discount_amount=row.discount_amount or 0.0,
                tax_amount=row.tax_amount or 0.0,
                final_amount=row.final_amount or 0.0,
                placed_at=row.placed_at,
            )
            for row in orders_for_buyer(buyer_id)
        ]
    )


@order_router.get("/{order_id}", response_model=BuyerOrderResponse)
async def get_order(order_id: str, buyer_id: str = Depends(current_user_id)) -> BuyerOrderResponse:
    order = current_domain.repository_for(Order).get_for_buyer(order_id, buyer_id)
    return BuyerOrderResponse(data=_order_response(order))


# ---------------------------------------------------------------------------
# Seller Router
# ---------------------------------------------------------------------------
seller_router = APIRouter(prefix="/seller", tags=["seller"])


@seller_router.get("/coupons", response_model=CouponListResponse)
async def list_seller_coupons(seller_id: str = Depends(current_user_id)) -> CouponListResponse:
    coupons = current_domain.repository_for(Coupon).find_for_seller(seller_id)
    return CouponListResponse(coupons=[_coupon_response(coupon) for coupon in coupons])


@seller_router.post("/coupons", status_code=201, response_model=CouponCreatedResponse)
async def create_coupon(body: CreateCouponRequest, seller_id: str = Depends(current_user_id)) -> CouponCreatedResponse:
    command = CreateCoupon(
        seller_id=seller_id,
        code=body.code,
        discount_type=body.type,
        value=body.value,
        min_order_value=body.min_order_value or 0.0,
        usage_limit=body.usage_limit,
        expires_at=body.expires_at,
    )
    coupon_id = current_domain.process(command, asynchronous=False)
    coupon = current_domain.repository_for(Coupon).get(coupon_id)
    return CouponCreatedResponse(coupon=_coupon_response(coupon))


@seller_router.delete("/coupons/{coupon_id}", response_model=MessageResponse)
async def delete_coupon(coupon_id: str, seller_id: str = Depends(current_user_id)) -> MessageResponse:
    current_domain.process(DeleteCoupon(seller_id=seller_id, coupon_id=coupon_id), asynchronous=False)
    return MessageResponse(message="Coupon deleted successfully.")


@seller_router.get("/orders", response_model=SellerOrderListResponse)
async def list_seller_orders(seller_id: str = Depends(current_user_id)) -> SellerOrderListResponse:
    return SellerOrderListResponse(
        orders=[
            SellerOrderSummary(
                order_id=str(row.order_id),
                buyer_id=str(row.buyer_id),
                status=row.status,
                item_count=row.item_count or 0,
                quantity=row.quantity or 0,
                seller_subtotal=row.seller_subtotal or 0.0,
                placed_at=row.placed_at,
            )
            for row in orders_for_seller(seller_id)
        ]
    )


@seller_router.get("/orders/{order_id}", response_model=SellerOrderResponse)
async def get_seller_order(order_id: str, seller_id: str = Depends(current_user_id)) -> SellerOrderResponse:
    order = current_domain.repository_for(Order).get_for_seller(order_id, seller_id)
    return SellerOrderResponse(order=_order_response(order, items=order.items_for_seller(seller_id)))


@seller_router.patch("/orders/{order_id}/status", response_model=OrderStatusResponse)
def update_order_status(
    order_id: str, body: UpdateOrderStatusRequest, seller_id: str = Depends(current_user_id)
) -> OrderStatusResponse:
    order = change_order_status(order_id=order_id, seller_id=seller_id, status=body.status)
    return OrderStatusResponse(order=_order_response(order))


@seller_router.post("/products", status_code=201, response_model=ProductIdResponse)
async def register_product(
    body: RegisterProductRequest, seller_id: str = Depends(current_user_id)
) -> ProductIdResponse:
    command = RegisterProduct(
        seller_id=seller_id,
        name=body.name,
        price=body.price,
        stock_quantity=body.stock_quantity,
    )
    product_id = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=product_id)


@seller_router.put("/products/{product_id}/restock", response_model=MessageResponse)
def restock(
    product_id: str, body: RestockProductRequest, seller_id: str = Depends(current_user_id)
) -> MessageResponse:
    restock_product(product_id=product_id, seller_id=seller_id, quantity=body.quantity)
    return MessageResponse(message="Product restocked.")
