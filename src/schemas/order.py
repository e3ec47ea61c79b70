"""Order Pydantic schemas for API request/response models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]

PaymentMethod = Literal["credit", "convenience", "cod"]


class ShippingAddressSchema(BaseModel):
    """Shipping address captured at checkout."""

    model_config = ConfigDict(from_attributes=True)

    full_name: str = Field(min_length=1, max_length=100, description="Recipient name")
    postal_code: str = Field(min_length=1, max_length=16, description="Postal code")
    prefecture: str = Field(min_length=1, description="Prefecture")
    city: str = Field(min_length=1, description="City")
    address: str = Field(min_length=1, description="Street address")
    building: str | None = Field(default=None, description="Building and room")
    phone_number: str = Field(min_length=1, max_length=20, description="Contact phone number")


class OrderCreate(BaseModel):
    """Schema for POST /orders (checkout)."""

    shipping_address: ShippingAddressSchema = Field(description="Where to ship")
    payment_method: PaymentMethod = Field(description="Payment method tag")
    notes: str | None = Field(default=None, max_length=1000, description="Customer notes")


class OrderItemSchema(BaseModel):
    """Schema for a single line item in an order."""

    model_config = ConfigDict(from_attributes=True)

    product_id: int = Field(description="Product id")
    product_name: str = Field(description="Product name at order time")
    quantity: int = Field(ge=1, description="Quantity ordered")
    options: dict[str, str] = Field(default_factory=dict, description="Selected options")
    price: int = Field(description="Regular price at order time")
    member_price: int = Field(description="Member price at order time")
    applied_price: int = Field(description="Price actually charged")
    image_url: str | None = Field(default=None, description="Product image")


class OrderResponse(BaseModel):
    """Schema for order API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Order unique identifier (UUID)")
    order_number: str = Field(description="Human-readable order number")
    user_id: str = Field(description="Owning actor")
    items: list[OrderItemSchema] = Field(description="Order line items")
    subtotal: int = Field(description="Sum of applied price x quantity")
    discount: int = Field(description="Coupon discount")
    points_used: int = Field(description="Points redeemed")
    shipping: int = Field(description="Shipping fee")
    total_amount: int = Field(description="Amount charged")
    shipping_address: ShippingAddressSchema = Field(description="Shipping address snapshot")
    payment_method: PaymentMethod = Field(description="Payment method tag")
    status: OrderStatus = Field(description="Order status")
    order_date: str = Field(description="Creation timestamp")
    updated_at: str = Field(description="Last status change")
    points_earned: int = Field(description="Points accrued by this order")
    coupon_code: str | None = Field(default=None, description="Applied coupon")
    notes: str | None = Field(default=None, description="Customer notes")


class OrderListResponse(BaseModel):
    """Schema for listing orders."""

    orders: list[OrderResponse] = Field(description="List of orders")
    total: int = Field(description="Total number of orders")


class CancelOrderResponse(BaseModel):
    """Result of a cancellation; points reversal may be degraded."""

    success: bool = Field(default=True, description="Whether the order was cancelled")
    order: OrderResponse = Field(description="The cancelled order")
    points_fully_reversed: bool = Field(description="False if earned points could not be taken back")
    unreversed_points: int = Field(default=0, description="Earned points left with the member")


class OrderStatusUpdate(BaseModel):
    status: OrderStatus = Field(description="Requested status")
