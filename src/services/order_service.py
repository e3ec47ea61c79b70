"""Order engine: checkout, order history, status changes and cancellation."""

import logging
import secrets
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from src.core.config import get_settings
from src.core.store import get_store
from src.models.order import ORDER_STATUSES, PAYMENT_METHODS, Order, OrderItem, ShippingAddress
from src.models.stock import StockLine
from src.repositories.order_repository import OrderRepository
from src.services.activity_service import ActivityService
from src.services.cart_service import CartService
from src.services.catalog_service import CatalogService, calculate_price
from src.services.errors import (
    ActorRequiredError,
    EmptyCartError,
    InsufficientPointsError,
    InvalidStatusTransitionError,
    OrderNotFoundError,
    ShopError,
)
from src.services.pricing import compute_totals, points_earned
from src.services.session_service import is_guest_actor
from src.services.stock_service import StockLedgerService
from src.services.user_service import BASE36_ALPHABET, UserService

logger = logging.getLogger(__name__)

CANCELLABLE_STATUSES = ("pending", "processing")

# Forward progression; cancellation is handled by cancel_order
STATUS_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "pending": ("processing",),
    "processing": ("shipped",),
    "shipped": ("delivered",),
    "delivered": (),
    "cancelled": (),
}


def generate_order_number() -> str:
    """Human-readable order number ``ORD-<ms>-<5 upper base36>``."""
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(5)).upper()
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _stock_lines(items: list[OrderItem]) -> list[StockLine]:
    return [{"product_id": item["product_id"], "quantity": item["quantity"]} for item in items]


@dataclass
class CancellationResult:
    """Outcome of a cancellation.

    The order is always cancelled; ``points_fully_reversed`` is False when
    the earned points could not be taken back because the balance was short.
    """

    order: Order
    points_fully_reversed: bool
    unreversed_points: int = 0


class OrderService:
    """Service turning carts into orders and managing their lifecycle."""

    def __init__(
        self,
        catalog_service: CatalogService | None = None,
        stock_service: StockLedgerService | None = None,
        user_service: UserService | None = None,
        cart_service: CartService | None = None,
        activity_service: ActivityService | None = None,
    ) -> None:
        """Initialize order service.

        Args:
            catalog_service: Optional catalog reader for testing.
            stock_service: Optional stock ledger for testing.
            user_service: Optional user service for testing.
            cart_service: Optional cart service for testing.
            activity_service: Optional activity log for testing.
        """
        self.orders = OrderRepository(get_store())
        self.settings = get_settings()
        self.activity_service = activity_service or ActivityService()
        self.catalog_service = catalog_service or CatalogService()
        self.stock_service = stock_service or StockLedgerService(
            catalog=self.catalog_service.catalog, activity_service=self.activity_service
        )
        self.user_service = user_service or UserService(activity_service=self.activity_service)
        self.cart_service = cart_service or CartService(
            catalog_service=self.catalog_service,
            stock_service=self.stock_service,
            user_service=self.user_service,
            activity_service=self.activity_service,
        )

    async def create_order(
        self,
        actor_id: str,
        shipping_address: ShippingAddress,
        payment_method: str,
        notes: str | None = None,
    ) -> Order:
        """Convert the actor's cart into a pending order.

        Stock for every line is reserved all-or-nothing before anything else
        is written. A failing points debit is logged and does not abort the
        order.

        Args:
            actor_id: Logged-in member placing the order.
            shipping_address: Address snapshot.
            payment_method: One of credit, convenience, cod.
            notes: Optional customer notes.

        Returns:
            Order: The created order.

        Raises:
            ActorRequiredError: If the actor is a guest or unknown.
            EmptyCartError: If the cart has no purchasable lines.
            InsufficientPointsError: If the cart redeems more points than the actor has.
            InsufficientStockError: If any line exceeds stock; nothing is mutated.
        """
        if is_guest_actor(actor_id) or not await self.user_service.is_member(actor_id):
            raise ActorRequiredError("Login is required to place an order")
        if payment_method not in PAYMENT_METHODS:
            raise ShopError(f"Unknown payment method '{payment_method}'")

        cart = await self.cart_service.get_cart(actor_id)
        if not cart["items"]:
            raise EmptyCartError()

        available_points = await self.user_service.available_points(actor_id)
        if cart["points_used"] > available_points:
            raise InsufficientPointsError(cart["points_used"], available_points)

        items: list[OrderItem] = []
        for cart_item in cart["items"]:
            product = await self.catalog_service.get_product(cart_item["product_id"])
            if product is None:
                logger.warning("Skipping product %s missing from catalog", cart_item["product_id"])
                continue
            items.append(
                {
                    "product_id": product["id"],
                    "product_name": product["name"],
                    "quantity": cart_item["quantity"],
                    "options": cart_item["options"],
                    "price": product["price"],
                    "member_price": product["member_price"],
                    "applied_price": calculate_price(product, is_member=True),
                    "image_url": product.get("image_url"),
                }
            )
        if not items:
            raise EmptyCartError()

        await self.stock_service.reserve(_stock_lines(items), actor_id=actor_id)

        subtotal = sum(item["applied_price"] * item["quantity"] for item in items)
        totals = compute_totals(subtotal, cart["coupon_code"], cart["points_used"], True, self.settings)
        now = _now()
        order: Order = {
            "id": str(uuid.uuid4()),
            "order_number": generate_order_number(),
            "user_id": actor_id,
            "items": items,
            "subtotal": totals.subtotal,
            "discount": totals.discount,
            "points_used": cart["points_used"],
            "shipping": totals.shipping,
            "total_amount": totals.total,
            "shipping_address": shipping_address,
            "payment_method": payment_method,
            "status": "pending",
            "order_date": now,
            "updated_at": now,
            "points_earned": points_earned(totals.total, self.settings.points_accrual_percent),
            "coupon_code": cart["coupon_code"],
            "notes": notes,
        }

        try:
            self.orders.append(actor_id, order)
        except Exception:
            logger.error("Persisting order %s failed; releasing reserved stock", order["id"])
            await self.stock_service.release(_stock_lines(items), actor_id=actor_id)
            raise

        if order["points_used"] > 0:
            try:
                await self.user_service.use_points(
                    actor_id, order["points_used"], f"Used on order {order['order_number']}"
                )
            except ShopError as e:
                logger.warning("Points debit for order %s failed: %s", order["id"], e)
                self.activity_service.log(
                    actor_id, "POINTS_DEBIT_ERROR", {"order_id": order["id"], "error": e.message}
                )
        if order["points_earned"] > 0:
            await self.user_service.add_points(
                actor_id, order["points_earned"], f"Earned on order {order['order_number']}"
            )

        await self.cart_service.clear(actor_id)

        self.activity_service.log(
            actor_id,
            "CREATE_ORDER",
            {
                "order_id": order["id"],
                "amount": order["total_amount"],
                "item_count": len(items),
                "payment_method": payment_method,
            },
        )
        logger.info("Created order %s for %s (total=%d)", order["id"], actor_id, order["total_amount"])
        return order

    async def get_orders(self, actor_id: str) -> list[Order]:
        """Actor's orders, newest first."""
        orders = self.orders.list_for_actor(actor_id)
        return sorted(orders, key=lambda o: o["order_date"], reverse=True)

    async def get_order(self, actor_id: str, order_id: str) -> Order | None:
        return next((o for o in self.orders.list_for_actor(actor_id) if o["id"] == order_id), None)

    async def find_order(self, order_id: str) -> tuple[str, Order] | None:
        """Locate an order across all actors (admin lookup)."""
        for actor_id, orders in self.orders.all_by_actor().items():
            for order in orders:
                if order["id"] == order_id:
                    return actor_id, order
        return None

    def _replace(self, actor_id: str, updated: Order) -> None:
        orders = self.orders.list_for_actor(actor_id)
        for index, order in enumerate(orders):
            if order["id"] == updated["id"]:
                orders[index] = updated
                break
        self.orders.save_for_actor(actor_id, orders)

    async def update_order_status(self, actor_id: str, order_id: str, new_status: str) -> Order:
        """Move an order forward through pending, processing, shipped, delivered.

        Requesting ``cancelled`` goes through cancel_order.

        Raises:
            OrderNotFoundError: If the actor has no such order.
            InvalidStatusTransitionError: For unknown, repeated or backward statuses.
        """
        order = await self.get_order(actor_id, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        if new_status == "cancelled":
            result = await self.cancel_order(actor_id, order_id)
            return result.order

        if new_status not in ORDER_STATUSES or new_status not in STATUS_TRANSITIONS[order["status"]]:
            raise InvalidStatusTransitionError(order["status"], new_status)

        previous = order["status"]
        order["status"] = new_status
        order["updated_at"] = _now()
        self._replace(actor_id, order)
        self.activity_service.log(actor_id, "UPDATE_ORDER_STATUS", {"order_id": order_id, "new_status": new_status})
        logger.info("Order %s moved %s -> %s", order_id, previous, new_status)
        return order

    async def cancel_order(self, actor_id: str, order_id: str) -> CancellationResult:
        """Cancel a pending or processing order and reverse its effects.

        Stock is restored unconditionally, redeemed points are credited back
        and earned points are debited back. If the balance can no longer
        cover the earned points the order is still cancelled and the result
        reports the shortfall.

        Raises:
            OrderNotFoundError: If the actor has no such order.
            InvalidStatusTransitionError: If the order is shipped, delivered or cancelled.
            StockConflictError: If the stock could not be restored; the order keeps its status.
        """
        order = await self.get_order(actor_id, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order["status"] not in CANCELLABLE_STATUSES:
            raise InvalidStatusTransitionError(order["status"], "cancelled")

        # Stock goes back first; a failed release leaves the order cancellable
        await self.stock_service.release(_stock_lines(order["items"]), actor_id=actor_id)

        order["status"] = "cancelled"
        order["updated_at"] = _now()
        self._replace(actor_id, order)

        if order["points_used"] > 0:
            await self.user_service.add_points(
                actor_id, order["points_used"], f"Refund for cancelled order {order['order_number']}"
            )

        fully_reversed = True
        unreversed = 0
        if order["points_earned"] > 0:
            try:
                await self.user_service.use_points(
                    actor_id, order["points_earned"], f"Reversal for cancelled order {order['order_number']}"
                )
            except ShopError as e:
                fully_reversed = False
                unreversed = order["points_earned"]
                logger.warning("Earned points of cancelled order %s not reversed: %s", order_id, e)

        self.activity_service.log(
            actor_id,
            "CANCEL_ORDER",
            {"order_id": order_id, "points_fully_reversed": fully_reversed, "unreversed_points": unreversed},
        )
        logger.info("Cancelled order %s for %s", order_id, actor_id)
        return CancellationResult(order=order, points_fully_reversed=fully_reversed, unreversed_points=unreversed)

    async def get_all_orders(self) -> list[Order]:
        """Every order of every actor, newest first (full scan)."""
        orders = [order for actor_orders in self.orders.all_by_actor().values() for order in actor_orders]
        return sorted(orders, key=lambda o: o["order_date"], reverse=True)

    async def get_order_stats(self) -> dict[str, Any]:
        """Order count, revenue and breakdowns across all actors.

        Revenue and average exclude cancelled orders; counts include them.
        """
        orders = await self.get_all_orders()
        active = [o for o in orders if o["status"] != "cancelled"]
        revenue = sum(o["total_amount"] for o in active)

        by_status = dict.fromkeys(ORDER_STATUSES, 0)
        by_payment = dict.fromkeys(PAYMENT_METHODS, 0)
        for order in orders:
            by_status[order["status"]] = by_status.get(order["status"], 0) + 1
            by_payment[order["payment_method"]] = by_payment.get(order["payment_method"], 0) + 1

        return {
            "total_orders": len(orders),
            "total_revenue": revenue,
            "average_order_value": revenue // len(active) if active else 0,
            "orders_by_status": by_status,
            "orders_by_payment_method": by_payment,
        }

    async def get_product_sales(self) -> list[dict[str, Any]]:
        """Quantity and revenue per product over non-cancelled orders, highest revenue first."""
        sales: dict[int, dict[str, Any]] = {}
        for order in await self.get_all_orders():
            if order["status"] == "cancelled":
                continue
            for item in order["items"]:
                entry = sales.setdefault(
                    item["product_id"],
                    {"product_id": item["product_id"], "product_name": item["product_name"], "quantity": 0, "revenue": 0},
                )
                entry["quantity"] += item["quantity"]
                entry["revenue"] += item["applied_price"] * item["quantity"]
        return sorted(sales.values(), key=lambda s: s["revenue"], reverse=True)

    async def delete_all(self) -> int:
        return self.orders.delete_all()
