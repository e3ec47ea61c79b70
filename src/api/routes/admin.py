"""Administrative console routes, guarded by the X-Admin-Token header."""

from typing import Annotated

from fastapi import APIRouter, Query

from src.api.deps import AdminAccess
from src.api.middleware.error_handler import NotFoundError
from src.schemas.admin import (
    ActivityEntryResponse,
    ActorAnalysisResponse,
    DemoConfigResponse,
    DemoExportResponse,
    DemoStatsResponse,
    HourlyActivityEntry,
    OrderStatsResponse,
    ProductSalesEntry,
    StockEntry,
    StockSet,
)
from src.schemas.auth import UserProfileResponse
from src.schemas.common import MessageResponse
from src.schemas.order import OrderListResponse, OrderResponse, OrderStatusUpdate
from src.services.activity_service import ActivityService
from src.services.demo_service import DemoService
from src.services.order_service import OrderService
from src.services.stock_service import StockLedgerService
from src.services.user_service import UserService

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[AdminAccess])


@router.get("/orders", response_model=OrderListResponse, summary="List all orders")
async def list_all_orders(
    status: Annotated[str | None, Query(description="Filter by order status")] = None,
) -> OrderListResponse:
    orders = await OrderService().get_all_orders()
    if status:
        orders = [o for o in orders if o["status"] == status]
    return OrderListResponse(orders=[OrderResponse(**o) for o in orders], total=len(orders))


@router.get("/orders/{order_id}", response_model=OrderResponse, summary="Get any order")
async def get_any_order(order_id: str) -> OrderResponse:
    found = await OrderService().find_order(order_id)
    if not found:
        raise NotFoundError("Order not found")
    return OrderResponse(**found[1])


@router.put(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    summary="Change order status",
    description="Move an order forward; requesting 'cancelled' cancels it with full reversal.",
)
async def update_order_status(order_id: str, data: OrderStatusUpdate) -> OrderResponse:
    service = OrderService()
    found = await service.find_order(order_id)
    if not found:
        raise NotFoundError("Order not found")
    actor_id, _ = found
    order = await service.update_order_status(actor_id, order_id, data.status)
    return OrderResponse(**order)


@router.get("/stats", response_model=OrderStatsResponse, summary="Order statistics")
async def get_order_stats() -> OrderStatsResponse:
    return OrderStatsResponse(**await OrderService().get_order_stats())


@router.get("/product-sales", response_model=list[ProductSalesEntry], summary="Sales per product")
async def get_product_sales() -> list[ProductSalesEntry]:
    return [ProductSalesEntry(**entry) for entry in await OrderService().get_product_sales()]


@router.get("/stock", response_model=list[StockEntry], summary="Stock of every product")
async def list_stock() -> list[StockEntry]:
    return [StockEntry(**entry) for entry in await StockLedgerService().list_stock()]


@router.put("/stock/{product_id}", response_model=StockEntry, summary="Set a product's stock")
async def set_stock(product_id: int, data: StockSet) -> StockEntry:
    """Overwrite a product's stock with an absolute quantity.

    Raises:
        ProductNotFoundError: 404 if the product is not in the catalog.
    """
    service = StockLedgerService()
    quantity = await service.set_stock(product_id, data.quantity)
    product = service.catalog.product(product_id)
    return StockEntry(product_id=product_id, name=product["name"], stock=quantity)


@router.post("/stock/initialize", response_model=list[StockEntry], summary="Re-seed the stock ledger")
async def initialize_stock() -> list[StockEntry]:
    service = StockLedgerService()
    await service.initialize()
    return [StockEntry(**entry) for entry in await service.list_stock()]


@router.get("/users", response_model=list[UserProfileResponse], summary="List members")
async def list_users() -> list[UserProfileResponse]:
    return [UserProfileResponse(**user) for user in await UserService().list_users()]


@router.get("/activity", response_model=list[ActivityEntryResponse], summary="Activity log")
async def list_activity(
    actor_id: Annotated[str | None, Query(description="Only entries by this actor")] = None,
    action: Annotated[str | None, Query(description="Only entries with this action")] = None,
    limit: Annotated[int, Query(ge=1, le=1000, description="Newest entries to return")] = 100,
) -> list[ActivityEntryResponse]:
    """Newest entries first, optionally filtered by actor and action."""
    service = ActivityService()
    if action:
        entries = service.get_by_action(action)
        if actor_id:
            entries = [e for e in entries if e["actor_id"] == actor_id]
    else:
        entries = service.get_for_actor(actor_id) if actor_id else service.get_all()
    return [ActivityEntryResponse(**e) for e in reversed(entries[-limit:])]


@router.get("/activity/hourly", response_model=list[HourlyActivityEntry], summary="Activity per hour of day")
async def get_hourly_activity() -> list[HourlyActivityEntry]:
    return [HourlyActivityEntry(**h) for h in ActivityService().hourly_activity()]


@router.get("/activity/errors", response_model=list[ActivityEntryResponse], summary="Error entries")
async def list_error_activity() -> list[ActivityEntryResponse]:
    """Entries naming an error or flagging a failure, newest first."""
    return [ActivityEntryResponse(**e) for e in reversed(ActivityService().error_entries())]


@router.get(
    "/activity/actors/{actor_id}",
    response_model=ActorAnalysisResponse,
    summary="Analyze one actor",
    description="Totals, favorite actions, session span and purchase rate from the actor's entries.",
)
async def analyze_actor(actor_id: str) -> ActorAnalysisResponse:
    return ActorAnalysisResponse(actor_id=actor_id, **ActivityService().analyze_actor(actor_id))


@router.delete("/activity", response_model=MessageResponse, summary="Drop old activity entries")
async def cleanup_activity(
    days: Annotated[int, Query(ge=0, description="Keep entries newer than this many days")] = 7,
) -> MessageResponse:
    removed = ActivityService().cleanup_older_than(days)
    return MessageResponse(message=f"Removed {removed} activity entries")


@router.post(
    "/demo/reset",
    response_model=DemoConfigResponse,
    summary="Reset demo data",
    description="Clear users, carts, orders and sessions, then re-seed stock.",
)
async def reset_demo() -> DemoConfigResponse:
    return DemoConfigResponse(**await DemoService().reset())


@router.get("/demo/config", response_model=DemoConfigResponse, summary="Demo configuration")
async def get_demo_config() -> DemoConfigResponse:
    return DemoConfigResponse(**await DemoService().get_config())


@router.get("/demo/stats", response_model=DemoStatsResponse, summary="Demo usage statistics")
async def get_demo_stats() -> DemoStatsResponse:
    return DemoStatsResponse(**await DemoService().get_stats())


@router.get("/demo/export", response_model=DemoExportResponse, summary="Export demo data")
async def export_demo() -> DemoExportResponse:
    return DemoExportResponse(**await DemoService().export())
