"""Order API routes: checkout, order history and cancellation."""

from fastapi import APIRouter, status

from src.api.deps import CurrentMember
from src.api.middleware.error_handler import NotFoundError
from src.schemas.order import CancelOrderResponse, OrderCreate, OrderListResponse, OrderResponse
from src.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
    description="Convert the member's cart into a pending order. Stock is reserved for every line or none.",
)
async def create_order(data: OrderCreate, member: CurrentMember) -> OrderResponse:
    """Check out the current cart.

    Raises:
        EmptyCartError: 400 if the cart is empty.
        InsufficientStockError: 400 if any line exceeds stock.
        StockConflictError: 409 if the stock ledger stayed contended.
    """
    order = await OrderService().create_order(
        member.actor_id,
        shipping_address=data.shipping_address.model_dump(exclude_none=True),
        payment_method=data.payment_method,
        notes=data.notes,
    )
    return OrderResponse(**order)


@router.get("", response_model=OrderListResponse, summary="List my orders")
async def list_orders(member: CurrentMember) -> OrderListResponse:
    """Order history of the logged-in member, newest first."""
    orders = await OrderService().get_orders(member.actor_id)
    return OrderListResponse(orders=[OrderResponse(**o) for o in orders], total=len(orders))


@router.get("/{order_id}", response_model=OrderResponse, summary="Get an order")
async def get_order(order_id: str, member: CurrentMember) -> OrderResponse:
    order = await OrderService().get_order(member.actor_id, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return OrderResponse(**order)


@router.post(
    "/{order_id}/cancel",
    response_model=CancelOrderResponse,
    summary="Cancel an order",
    description="Cancel a pending or processing order, restoring stock and reversing points.",
)
async def cancel_order(order_id: str, member: CurrentMember) -> CancelOrderResponse:
    result = await OrderService().cancel_order(member.actor_id, order_id)
    return CancelOrderResponse(
        order=OrderResponse(**result.order),
        points_fully_reversed=result.points_fully_reversed,
        unreversed_points=result.unreversed_points,
    )
