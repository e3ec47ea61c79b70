"""Cart API routes for the current actor (guest or member)."""

from fastapi import APIRouter, status

from src.api.deps import ActorContext, CurrentActor
from src.schemas.cart import (
    CartAvailabilityResponse,
    CartItemAdd,
    CartItemRemove,
    CartItemUpdate,
    CartResponse,
    CouponApply,
    PointsApply,
    StockShortfallSchema,
)
from src.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


async def _cart_response(service: CartService, actor: ActorContext) -> CartResponse:
    view = await service.get_cart_view(actor.actor_id)
    return CartResponse(actor_id=actor.actor_id, **view)


@router.get(
    "",
    response_model=CartResponse,
    summary="Get cart",
    description="Display items with the actor's prices, totals and item count.",
)
async def get_cart(actor: CurrentActor) -> CartResponse:
    return await _cart_response(CartService(), actor)


@router.get(
    "/availability",
    response_model=CartAvailabilityResponse,
    summary="Check cart against stock",
    description="Report lines that current stock cannot cover. Nothing is reserved.",
)
async def check_cart_availability(actor: CurrentActor) -> CartAvailabilityResponse:
    shortfalls = await CartService().check_availability(actor.actor_id)
    return CartAvailabilityResponse(
        available=not shortfalls,
        shortfalls=[StockShortfallSchema(**s) for s in shortfalls],
    )


@router.post(
    "/items",
    response_model=CartResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add item to cart",
)
async def add_cart_item(data: CartItemAdd, actor: CurrentActor) -> CartResponse:
    """Add a product, merging with an existing line that has the same options.

    Raises:
        ProductNotFoundError: 404 if the product does not exist.
        InsufficientStockError: 400 if the merged quantity exceeds stock.
    """
    service = CartService()
    options = data.options.model_dump() if data.options else None
    await service.add_item(actor.actor_id, data.product_id, data.quantity, options)
    return await _cart_response(service, actor)


@router.put(
    "/items",
    response_model=CartResponse,
    summary="Set item quantity",
    description="Set the absolute quantity of a line; zero removes it.",
)
async def update_cart_item(data: CartItemUpdate, actor: CurrentActor) -> CartResponse:
    service = CartService()
    options = data.options.model_dump() if data.options else None
    await service.set_item_quantity(actor.actor_id, data.product_id, data.quantity, options)
    return await _cart_response(service, actor)


@router.delete("/items", response_model=CartResponse, summary="Remove item from cart")
async def remove_cart_item(data: CartItemRemove, actor: CurrentActor) -> CartResponse:
    service = CartService()
    options = data.options.model_dump() if data.options else None
    await service.remove_item(actor.actor_id, data.product_id, options)
    return await _cart_response(service, actor)


@router.delete("", response_model=CartResponse, summary="Clear cart")
async def clear_cart(actor: CurrentActor) -> CartResponse:
    service = CartService()
    await service.clear(actor.actor_id)
    return await _cart_response(service, actor)


@router.put("/coupon", response_model=CartResponse, summary="Apply coupon")
async def apply_coupon(data: CouponApply, actor: CurrentActor) -> CartResponse:
    """Apply a coupon code (case-insensitive).

    Member-only coupons are accepted for guests but discount nothing until login.
    """
    service = CartService()
    await service.apply_coupon(actor.actor_id, data.code)
    return await _cart_response(service, actor)


@router.delete("/coupon", response_model=CartResponse, summary="Remove coupon")
async def remove_coupon(actor: CurrentActor) -> CartResponse:
    service = CartService()
    await service.remove_coupon(actor.actor_id)
    return await _cart_response(service, actor)


@router.put("/points", response_model=CartResponse, summary="Set points to redeem")
async def set_points(data: PointsApply, actor: CurrentActor) -> CartResponse:
    """Set the points to redeem on this cart.

    Raises:
        ActorRequiredError: 400 for guests.
        InsufficientPointsError: 400 if the balance is smaller.
    """
    service = CartService()
    await service.set_points_used(actor.actor_id, data.points)
    return await _cart_response(service, actor)


@router.delete("/points", response_model=CartResponse, summary="Stop redeeming points")
async def clear_points(actor: CurrentActor) -> CartResponse:
    service = CartService()
    await service.clear_points_used(actor.actor_id)
    return await _cart_response(service, actor)
