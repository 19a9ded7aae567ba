"""Pydantic request/response schemas for the Marketplace API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. Amounts leave the API as JSON numbers.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=20)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1, max_length=100)


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CreateIntentRequest(BaseModel):
    coupon_codes: list[str] = []


class IntentData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_secret: str | None = Field(alias="clientSecret")
    amount: float
    payment_intent_id: str = Field(alias="paymentIntentId")


class IntentResponse(BaseModel):
    success: bool = True
    data: IntentData


class PlaceOrderRequest(BaseModel):
    payment_intent_id: str = Field(min_length=1)
    # Accepted for compatibility; the coupons applied are the ones priced into the intent
    coupon_codes: list[str] = []
    shipping_address: ShippingAddressSchema


class PlacedOrderData(BaseModel):
    order_id: str
    total_amount: float
    discount_amount: float
    tax_amount: float
    final_amount: float


class PlacedOrderResponse(BaseModel):
    success: bool = True
    message: str = "Order placed successfully"
    data: PlacedOrderData


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class UpdateCartQuantityRequest(BaseModel):
    quantity: int = Field(ge=1)


class CartLineIdResponse(BaseModel):
    line_id: str


class CartLineResponse(BaseModel):
    line_id: str
    product_id: str
    seller_id: str | None = None
    product_name: str | None = None
    unit_price: float | None = None
    quantity: int
    line_total: float | None = None
    stock_quantity: int | None = None
    available: bool


class CartResponse(BaseModel):
    cart_id: str | None
    items: list[CartLineResponse]
    subtotal: float


# ---------------------------------------------------------------------------
# Coupons (buyer)
# ---------------------------------------------------------------------------
class ApplyCouponRequest(BaseModel):
    code: str = Field(min_length=1)


class AppliedCouponData(BaseModel):
    code: str
    seller_id: str
    discount_amount: float
    applicable_subtotal: float


class ApplyCouponResponse(BaseModel):
    success: bool = True
    message: str = "Coupon applied successfully."
    coupon: AppliedCouponData


class CouponOptionResponse(BaseModel):
    id: str
    code: str
    type: str
    value: float
    min_order_value: float
    expires_at: date | None = None
    discount_amount: float


class SellerCouponsResponse(BaseModel):
    seller_id: str
    subtotal: float
    coupons: list[CouponOptionResponse]


class AvailableCouponsResponse(BaseModel):
    success: bool = True
    coupons: list[SellerCouponsResponse]


# ---------------------------------------------------------------------------
# Coupons (seller)
# ---------------------------------------------------------------------------
class CreateCouponRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50, pattern=r"^[A-Za-z0-9_-]+$")
    type: Literal["fixed", "percentage"]
    value: float = Field(ge=0)
    min_order_value: float | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, ge=1)
    expires_at: date


class CouponResponse(BaseModel):
    id: str
    code: str
    type: str
    value: float
    min_order_value: float
    usage_limit: int | None = None
    usage_count: int
    expires_at: date | None = None


class CouponListResponse(BaseModel):
    coupons: list[CouponResponse]


class CouponCreatedResponse(BaseModel):
    success: bool = True
    message: str = "Coupon created successfully."
    coupon: CouponResponse


# ---------------------------------------------------------------------------
# Seller orders and products
# ---------------------------------------------------------------------------
class UpdateOrderStatusRequest(BaseModel):
    status: str


class OrderItemResponse(BaseModel):
    product_id: str
    seller_id: str
    product_name: str
    quantity: int
    unit_price: float


class OrderResponse(BaseModel):
    id: str
    buyer_id: str
    status: str
    subtotal: float
    discount_amount: float
    tax_amount: float
    final_amount: float
    shipping_address: ShippingAddressSchema | None = None
    placed_at: datetime | None = None
    items: list[OrderItemResponse]


class OrderStatusResponse(BaseModel):
    success: bool = True
    message: str = "Order status updated successfully."
    order: OrderResponse


class BuyerOrderSummary(BaseModel):
    id: str
    status: str
    item_count: int
    subtotal: float
    discount_amount: float
    tax_amount: float
    final_amount: float
    placed_at: datetime | None = None


class BuyerOrderListResponse(BaseModel):
    success: bool = True
    data: list[BuyerOrderSummary]


class BuyerOrderResponse(BaseModel):
    success: bool = True
    data: OrderResponse


class SellerOrderSummary(BaseModel):
    order_id: str
    buyer_id: str
    status: str
    item_count: int
    quantity: int
    seller_subtotal: float
    placed_at: datetime | None = None


class SellerOrderListResponse(BaseModel):
    orders: list[SellerOrderSummary]


class SellerOrderResponse(BaseModel):
    order: OrderResponse


class RegisterProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    price: float = Field(ge=0)
    stock_quantity: int = Field(ge=0, default=0)


class ProductIdResponse(BaseModel):
    product_id: str


class RestockProductRequest(BaseModel):
    quantity: int = Field(ge=1)
