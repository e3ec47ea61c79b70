"""Order model type definitions for persisted orders."""

from typing import Literal, TypedDict

# Order lifecycle states
OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]

PaymentMethod = Literal["credit", "convenience", "cod"]

ORDER_STATUSES: tuple[str, ...] = ("pending", "processing", "shipped", "delivered", "cancelled")
PAYMENT_METHODS: tuple[str, ...] = ("credit", "convenience", "cod")


class ShippingAddress(TypedDict, total=False):
    """Shipping address captured at checkout."""

    full_name: str
    postal_code: str
    prefecture: str
    city: str
    address: str
    building: str | None
    phone_number: str


class OrderItem(TypedDict):
    """Structure for a single line item in an order.

    Carries both catalog prices and the price actually charged, fixed at
    order time.
    """

    product_id: int
    product_name: str
    quantity: int
    options: dict[str, str]
    price: int
    member_price: int
    applied_price: int
    image_url: str | None


class Order(TypedDict):
    """Order record stored in the owning actor's order list."""

    id: str
    order_number: str
    user_id: str
    items: list[OrderItem]
    subtotal: int
    discount: int
    points_used: int
    shipping: int
    total_amount: int
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    status: OrderStatus
    order_date: str
    updated_at: str
    points_earned: int
    coupon_code: str | None
    notes: str | None
