"""Cart engine: one cart per actor and its priced projection."""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from src.core.config import get_settings
from src.core.store import get_store
from src.models.cart import Cart, CartItem, SelectedOptions
from src.models.stock import StockShortfall
from src.repositories.cart_repository import CartRepository
from src.services.activity_service import ActivityService
from src.services.catalog_service import CatalogService, calculate_price
from src.services.errors import (
    ActorRequiredError,
    CartItemNotFoundError,
    InsufficientPointsError,
    InsufficientStockError,
    InvalidQuantityError,
    ProductNotFoundError,
)
from src.services.pricing import CartTotals, compute_totals, normalize_coupon_code
from src.services.session_service import GUEST_ACTOR_ID, is_guest_actor
from src.services.stock_service import StockLedgerService
from src.services.user_service import UserService

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def empty_cart() -> Cart:
    return {"items": [], "coupon_code": None, "points_used": 0, "last_updated": _now()}


def normalize_options(options: dict[str, Any] | None) -> SelectedOptions:
    """Drop unset option values so {} and {"size": None} compare equal."""
    return {k: v for k, v in (options or {}).items() if v not in (None, "")}


def line_key(product_id: int, options: dict[str, Any] | None) -> tuple[int, str]:
    """Identity of a line item: product id plus canonically serialized options."""
    return product_id, json.dumps(normalize_options(options), sort_keys=True)


def _find_line(cart: Cart, product_id: int, options: dict[str, Any] | None) -> int:
    wanted = line_key(product_id, options)
    for index, item in enumerate(cart["items"]):
        if line_key(item["product_id"], item["options"]) == wanted:
            return index
    return -1


class CartService:
    """Service maintaining per-actor carts."""

    def __init__(
        self,
        catalog_service: CatalogService | None = None,
        stock_service: StockLedgerService | None = None,
        user_service: UserService | None = None,
        activity_service: ActivityService | None = None,
    ) -> None:
        """Initialize cart service.

        Args:
            catalog_service: Optional catalog reader for testing.
            stock_service: Optional stock ledger for testing.
            user_service: Optional user service for testing.
            activity_service: Optional activity log for testing.
        """
        self.carts = CartRepository(get_store())
        self.settings = get_settings()
        self.activity_service = activity_service or ActivityService()
        self.catalog_service = catalog_service or CatalogService()
        self.stock_service = stock_service or StockLedgerService(
            catalog=self.catalog_service.catalog, activity_service=self.activity_service
        )
        self.user_service = user_service or UserService(activity_service=self.activity_service)

    def _save(self, actor_id: str, cart: Cart) -> Cart:
        cart["last_updated"] = _now()
        self.carts.save(actor_id, cart)
        return cart

    def _log(self, actor_id: str, action: str, details: dict[str, Any]) -> None:
        if not is_guest_actor(actor_id):
            self.activity_service.log(actor_id, action, details)

    async def get_cart(self, actor_id: str) -> Cart:
        """Return the actor's cart; an empty cart if none was persisted."""
        return self.carts.get(actor_id) or empty_cart()

    async def add_item(
        self,
        actor_id: str,
        product_id: int,
        quantity: int,
        options: dict[str, Any] | None = None,
    ) -> Cart:
        """Add quantity of a product, merging with a matching line.

        The stock check is a pre-check against the ledger, not a reservation.

        Args:
            actor_id: Cart owner.
            product_id: Product to add.
            quantity: Positive quantity to add.
            options: Selected size/color.

        Returns:
            Cart: The updated cart.

        Raises:
            ProductNotFoundError: If the product is not in the catalog.
            InsufficientStockError: If the merged quantity exceeds stock; the cart is unchanged.
        """
        if quantity <= 0:
            raise InvalidQuantityError(quantity)
        if await self.catalog_service.get_product(product_id) is None:
            raise ProductNotFoundError(product_id)

        cart = await self.get_cart(actor_id)
        index = _find_line(cart, product_id, options)
        existing = cart["items"][index]["quantity"] if index >= 0 else 0

        available = await self.stock_service.get_stock(product_id)
        if existing + quantity > available:
            raise InsufficientStockError(product_id, existing + quantity, available)

        if index >= 0:
            cart["items"][index]["quantity"] = existing + quantity
        else:
            item: CartItem = {
                "product_id": product_id,
                "quantity": quantity,
                "options": normalize_options(options),
                "added_at": _now(),
            }
            cart["items"].append(item)

        self._save(actor_id, cart)
        self._log(actor_id, "ADD_TO_CART", {"product_id": product_id, "quantity": quantity, "options": options})
        return cart

    async def set_item_quantity(
        self,
        actor_id: str,
        product_id: int,
        quantity: int,
        options: dict[str, Any] | None = None,
    ) -> Cart:
        """Set the absolute quantity of an existing line; 0 or less removes it.

        Raises:
            CartItemNotFoundError: If no line matches product and options.
            InsufficientStockError: If stock is below the new quantity.
        """
        cart = await self.get_cart(actor_id)
        index = _find_line(cart, product_id, options)
        if index < 0:
            raise CartItemNotFoundError(product_id)

        if quantity <= 0:
            del cart["items"][index]
        else:
            available = await self.stock_service.get_stock(product_id)
            if quantity > available:
                raise InsufficientStockError(product_id, quantity, available)
            cart["items"][index]["quantity"] = quantity

        self._save(actor_id, cart)
        self._log(actor_id, "UPDATE_CART", {"product_id": product_id, "quantity": quantity, "options": options})
        return cart

    async def remove_item(self, actor_id: str, product_id: int, options: dict[str, Any] | None = None) -> Cart:
        return await self.set_item_quantity(actor_id, product_id, 0, options)

    async def clear(self, actor_id: str) -> Cart:
        """Empty the cart and reset coupon and points."""
        cart = self._save(actor_id, empty_cart())
        self._log(actor_id, "CLEAR_CART", {})
        return cart

    async def check_availability(self, actor_id: str) -> list[StockShortfall]:
        """Lines of the actor's cart that current stock cannot cover.

        Lines sharing a product are summed, so two option variants of one
        product compete for the same stock.
        """
        cart = await self.get_cart(actor_id)
        lines = [{"product_id": item["product_id"], "quantity": item["quantity"]} for item in cart["items"]]
        return await self.stock_service.check_availability(lines)

    async def apply_coupon(self, actor_id: str, code: str) -> Cart:
        """Apply a coupon code, stored upper-cased.

        Raises:
            UnknownCouponError: If the code is not recognized; the cart is unchanged.
        """
        normalized = normalize_coupon_code(code)
        cart = await self.get_cart(actor_id)
        cart["coupon_code"] = normalized
        self._save(actor_id, cart)
        self._log(actor_id, "APPLY_COUPON", {"coupon_code": normalized})
        return cart

    async def remove_coupon(self, actor_id: str) -> Cart:
        cart = await self.get_cart(actor_id)
        cart["coupon_code"] = None
        self._save(actor_id, cart)
        self._log(actor_id, "REMOVE_COUPON", {})
        return cart

    async def set_points_used(self, actor_id: str, points: int) -> Cart:
        """Set (not add to) the points the actor intends to redeem.

        Raises:
            ActorRequiredError: If the actor is a guest.
            InsufficientPointsError: If points exceed the available balance.
        """
        if is_guest_actor(actor_id):
            raise ActorRequiredError("Login is required to use points")
        if points < 0:
            raise InvalidQuantityError(points)

        available = await self.user_service.available_points(actor_id)
        if points > available:
            raise InsufficientPointsError(points, available)

        cart = await self.get_cart(actor_id)
        cart["points_used"] = points
        self._save(actor_id, cart)
        self._log(actor_id, "USE_POINTS", {"points": points})
        return cart

    async def clear_points_used(self, actor_id: str) -> Cart:
        cart = await self.get_cart(actor_id)
        cart["points_used"] = 0
        self._save(actor_id, cart)
        self._log(actor_id, "CLEAR_POINTS_USED", {})
        return cart

    async def compute_display_items(self, actor_id: str) -> list[dict[str, Any]]:
        """Join each line with its product and the actor's price basis.

        Lines whose product is no longer in the catalog are skipped.
        """
        cart = await self.get_cart(actor_id)
        is_member = await self.user_service.is_member(actor_id)

        display_items = []
        for item in cart["items"]:
            product = await self.catalog_service.get_product(item["product_id"])
            if product is None:
                continue
            applied_price = calculate_price(product, is_member)
            display_items.append(
                {
                    **item,
                    "product": product,
                    "applied_price": applied_price,
                    "subtotal": applied_price * item["quantity"],
                }
            )
        return display_items

    async def compute_totals(self, actor_id: str) -> CartTotals:
        """Subtotal, coupon discount, points, shipping and total for the cart."""
        cart = await self.get_cart(actor_id)
        is_member = await self.user_service.is_member(actor_id)
        display_items = await self.compute_display_items(actor_id)
        subtotal = sum(item["subtotal"] for item in display_items)
        return compute_totals(subtotal, cart["coupon_code"], cart["points_used"], is_member, self.settings)

    async def item_count(self, actor_id: str) -> int:
        cart = await self.get_cart(actor_id)
        return sum(item["quantity"] for item in cart["items"])

    async def get_cart_view(self, actor_id: str) -> dict[str, Any]:
        """Everything a cart page needs in one call."""
        cart = await self.get_cart(actor_id)
        totals = await self.compute_totals(actor_id)
        return {
            "items": await self.compute_display_items(actor_id),
            "coupon_code": cart["coupon_code"],
            "points_used": cart["points_used"],
            "item_count": await self.item_count(actor_id),
            "totals": totals.to_dict(),
            "last_updated": cart["last_updated"],
        }

    async def migrate_guest_cart(self, actor_id: str, guest_id: str = GUEST_ACTOR_ID) -> Cart:
        """Merge a guest cart into a member's cart after login.

        Quantities of matching lines are summed. Stock is not re-validated.
        The guest cart is reset to empty afterwards.

        Args:
            actor_id: The member who just logged in.
            guest_id: Guest actor whose cart is merged.

        Returns:
            Cart: The member's merged cart.
        """
        guest_cart = self.carts.get(guest_id)
        if not guest_cart or not guest_cart["items"]:
            return await self.get_cart(actor_id)

        cart = await self.get_cart(actor_id)
        for guest_item in guest_cart["items"]:
            index = _find_line(cart, guest_item["product_id"], guest_item["options"])
            if index >= 0:
                cart["items"][index]["quantity"] += guest_item["quantity"]
            else:
                cart["items"].append(dict(guest_item))

        self._save(actor_id, cart)
        self.carts.delete(guest_id)
        logger.info("Migrated %d guest cart lines into %s", len(guest_cart["items"]), actor_id)
        self._log(actor_id, "MIGRATE_GUEST_CART", {"lines": len(guest_cart["items"])})
        return cart

    async def delete_all(self) -> int:
        return self.carts.delete_all()
