"""Cart Pydantic schemas for API request/response models."""

from pydantic import BaseModel, Field

from src.schemas.product import ProductResponse


class SelectedOptionsSchema(BaseModel):
    """Options chosen for a line item."""

    size: str | None = Field(default=None, description="Selected size")
    color: str | None = Field(default=None, description="Selected color")


class CartItemAdd(BaseModel):
    """Schema for POST /cart/items."""

    product_id: int = Field(description="Product to add")
    quantity: int = Field(default=1, ge=1, description="Quantity to add")
    options: SelectedOptionsSchema | None = Field(default=None, description="Selected options")


class CartItemUpdate(BaseModel):
    """Schema for PUT /cart/items; a quantity of 0 removes the line."""

    product_id: int = Field(description="Product of the line")
    quantity: int = Field(description="New absolute quantity")
    options: SelectedOptionsSchema | None = Field(default=None, description="Options identifying the line")


class CartItemRemove(BaseModel):
    """Schema for DELETE /cart/items."""

    product_id: int = Field(description="Product of the line")
    options: SelectedOptionsSchema | None = Field(default=None, description="Options identifying the line")


class CouponApply(BaseModel):
    code: str = Field(min_length=1, max_length=32, description="Coupon code, case-insensitive")


class PointsApply(BaseModel):
    points: int = Field(ge=0, description="Points to redeem on this cart")


class CartDisplayItem(BaseModel):
    """Cart line joined with its product and the actor's price basis."""

    product_id: int = Field(description="Product id")
    quantity: int = Field(ge=1, description="Quantity")
    options: SelectedOptionsSchema = Field(default_factory=SelectedOptionsSchema, description="Selected options")
    added_at: str = Field(description="When the line was first added")
    product: ProductResponse = Field(description="Catalog product")
    applied_price: int = Field(description="Member or regular unit price")
    subtotal: int = Field(description="applied_price x quantity")


class CartTotalsSchema(BaseModel):
    subtotal: int = Field(description="Sum of line subtotals")
    discount: int = Field(description="Coupon discount")
    points_discount: int = Field(description="Points redeemed")
    shipping: int = Field(description="Shipping fee")
    total: int = Field(description="max(0, subtotal - discount - points + shipping)")


class CartResponse(BaseModel):
    """Priced cart projection."""

    success: bool = Field(default=True, description="Whether the operation succeeded")
    actor_id: str = Field(description="Cart owner")
    items: list[CartDisplayItem] = Field(default_factory=list, description="Display lines")
    coupon_code: str | None = Field(default=None, description="Applied coupon")
    points_used: int = Field(default=0, description="Points set to redeem")
    item_count: int = Field(default=0, description="Total quantity across lines")
    totals: CartTotalsSchema = Field(description="Totals")
    last_updated: str = Field(description="Last modification timestamp")


class StockShortfallSchema(BaseModel):
    product_id: int = Field(description="Product id")
    requested: int = Field(description="Quantity across the cart's lines for this product")
    available: int = Field(description="Current stock")


class CartAvailabilityResponse(BaseModel):
    """Whether the cart could be checked out against current stock."""

    success: bool = Field(default=True, description="Whether the operation succeeded")
    available: bool = Field(description="True if every line is covered by stock")
    shortfalls: list[StockShortfallSchema] = Field(default_factory=list, description="Lines stock cannot cover")
