"""Administrative console schemas."""

from typing import Any

from pydantic import BaseModel, Field

from src.schemas.auth import UserProfileResponse
from src.schemas.order import OrderResponse


class OrderStatsResponse(BaseModel):
    """Aggregates across every actor's orders."""

    total_orders: int = Field(description="All orders including cancelled")
    total_revenue: int = Field(description="Revenue excluding cancelled orders")
    average_order_value: int = Field(description="Revenue divided by non-cancelled orders, rounded down")
    orders_by_status: dict[str, int] = Field(description="Order count per status")
    orders_by_payment_method: dict[str, int] = Field(description="Order count per payment method")


class ProductSalesEntry(BaseModel):
    product_id: int = Field(description="Product id")
    product_name: str = Field(description="Product name")
    quantity: int = Field(description="Units sold")
    revenue: int = Field(description="Applied price x quantity")


class StockEntry(BaseModel):
    product_id: int = Field(description="Product id")
    name: str = Field(description="Product name")
    stock: int = Field(description="Remaining quantity")


class StockSet(BaseModel):
    quantity: int = Field(ge=0, description="New absolute quantity")


class ActivityEntryResponse(BaseModel):
    id: str = Field(description="Entry id")
    actor_id: str = Field(description="Acting actor")
    action: str = Field(description="Action name")
    details: dict[str, Any] = Field(default_factory=dict, description="Action payload")
    timestamp: str = Field(description="When it happened")


class DemoConfigResponse(BaseModel):
    reset_time: str = Field(description="Last reset timestamp")
    is_active: bool = Field(description="Whether the demo is active")
    start_time: str = Field(description="Demo start timestamp")


class ActionCount(BaseModel):
    action: str
    count: int


class DemoStatsResponse(BaseModel):
    """Demo usage summary."""

    registrations: int = Field(description="REGISTER entries in the activity log")
    active_users: int = Field(description="Members who logged in within 24 hours")
    total_orders: int = Field(description="All orders")
    total_sales: int = Field(description="Revenue excluding cancelled orders")
    cart_additions: int = Field(description="ADD_TO_CART entries")
    conversion_rate: str = Field(description="Orders per cart addition, as a percentage")
    popular_actions: list[ActionCount] = Field(description="Most frequent actions")


class HourlyActivityEntry(BaseModel):
    hour: int = Field(ge=0, le=23, description="UTC hour of day")
    count: int = Field(description="Entries logged in that hour")


class ActorAnalysisResponse(BaseModel):
    """Behavior summary of one actor, computed from retained log entries."""

    actor_id: str = Field(description="Analyzed actor")
    total_actions: int = Field(description="Entries by this actor")
    last_activity: str | None = Field(default=None, description="Timestamp of the newest entry")
    favorite_actions: list[ActionCount] = Field(description="Top five actions")
    session_minutes: int = Field(description="Minutes between the first and newest entry")
    purchase_rate: float = Field(description="Orders per cart addition, as a percentage")


class DemoExportResponse(BaseModel):
    """Backup snapshot of demo data."""

    users: list[UserProfileResponse] = Field(description="Members as public profiles")
    orders: list[OrderResponse] = Field(description="Every order, newest first")
    logs: list[ActivityEntryResponse] = Field(description="Retained activity entries, oldest first")
    config: DemoConfigResponse = Field(description="Demo configuration")
    export_date: str = Field(description="When the snapshot was taken")
