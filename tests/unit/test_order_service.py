"""Unit tests for OrderService."""

import re
import uuid
from typing import Any
from unittest.mock import patch

import pytest

from src.services.errors import (
    ActorRequiredError,
    EmptyCartError,
    InsufficientPointsError,
    InsufficientStockError,
    InvalidStatusTransitionError,
    OrderNotFoundError,
    ShopError,
    StockConflictError,
)
from src.services.order_service import generate_order_number

ADDRESS = {
    "full_name": "Taro Yamada",
    "postal_code": "100-0001",
    "prefecture": "Tokyo",
    "city": "Chiyoda",
    "address": "1-1",
    "phone_number": "03-0000-0000",
}


async def checkout(shop: Any, actor_id: str, payment_method: str = "credit") -> dict:
    return await shop.create_order(actor_id, shipping_address=ADDRESS, payment_method=payment_method)


class TestOrderIdentity:
    """Tests for order identifiers."""

    def test_order_number_format(self) -> None:
        assert re.fullmatch(r"ORD-\d+-[0-9A-Z]{5}", generate_order_number())

    @pytest.mark.asyncio
    async def test_order_id_is_uuid(self, shop: Any, member: dict) -> None:
        await shop.cart_service.add_item(member["id"], 5, 1)
        order = await checkout(shop, member["id"])
        assert uuid.UUID(order["id"]).version == 4


class TestCreateOrder:
    """Tests for create_order."""

    @pytest.mark.asyncio
    async def test_guest_checkout_has_no_side_effects(self, shop: Any) -> None:
        await shop.cart_service.add_item("guest:s1", 1, 3)

        with pytest.raises(ActorRequiredError):
            await checkout(shop, "guest:s1")

        assert await shop.stock_service.get_stock(1) == 5
        assert await shop.get_all_orders() == []
        assert len((await shop.cart_service.get_cart("guest:s1"))["items"]) == 1

    @pytest.mark.asyncio
    async def test_empty_cart(self, shop: Any, member: dict) -> None:
        with pytest.raises(EmptyCartError):
            await checkout(shop, member["id"])
        assert await shop.get_orders(member["id"]) == []

    @pytest.mark.asyncio
    async def test_unknown_payment_method(self, shop: Any, member: dict) -> None:
        await shop.cart_service.add_item(member["id"], 5, 1)
        with pytest.raises(ShopError):
            await checkout(shop, member["id"], payment_method="bitcoin")

    @pytest.mark.asyncio
    async def test_stock_shortfall_is_all_or_nothing(self, shop: Any, member: dict) -> None:
        """Test that one short line aborts the order without touching other lines."""
        carts = shop.cart_service
        await carts.add_item(member["id"], 1, 2)
        await carts.add_item(member["id"], 4, 2)
        await shop.stock_service.set_stock(4, 1)

        with pytest.raises(InsufficientStockError):
            await checkout(shop, member["id"])

        assert await shop.stock_service.get_stock(1) == 5
        assert await shop.get_orders(member["id"]) == []
        assert len((await carts.get_cart(member["id"]))["items"]) == 2

    @pytest.mark.asyncio
    async def test_points_beyond_balance_rejected_before_stock(self, shop: Any, member: dict) -> None:
        carts = shop.cart_service
        await carts.add_item(member["id"], 2, 1)
        await carts.set_points_used(member["id"], 500)
        await shop.user_service.use_points(member["id"], 100, "elsewhere")

        with pytest.raises(InsufficientPointsError):
            await checkout(shop, member["id"])
        assert await shop.stock_service.get_stock(2) == 10

    @pytest.mark.asyncio
    async def test_line_items_snapshot_prices(self, shop: Any, member: dict) -> None:
        await shop.cart_service.add_item(member["id"], 2, 1, {"size": "L"})

        order = await checkout(shop, member["id"], payment_method="cod")
        item = order["items"][0]

        assert item["product_name"] == "Premium Hoodie"
        assert (item["price"], item["member_price"], item["applied_price"]) == (5000, 4500, 4500)
        assert item["options"] == {"size": "L"}
        assert order["payment_method"] == "cod"
        assert order["status"] == "pending"

    @pytest.mark.asyncio
    async def test_persist_failure_releases_reservation(self, shop: Any, member: dict) -> None:
        await shop.cart_service.add_item(member["id"], 3, 2)

        with patch.object(shop.orders, "append", side_effect=RuntimeError("store down")):
            with pytest.raises(RuntimeError):
                await checkout(shop, member["id"])

        assert await shop.stock_service.get_stock(3) == 3

    @pytest.mark.asyncio
    async def test_missing_catalog_product_is_skipped(self, shop: Any, member: dict) -> None:
        """Test that a line whose product left the catalog is dropped from the order."""
        await shop.cart_service.add_item(member["id"], 5, 1)
        await shop.cart_service.add_item(member["id"], 1, 1)
        real_get_product = shop.catalog_service.get_product

        async def without_tee(product_id: int) -> dict | None:
            return None if product_id == 1 else await real_get_product(product_id)

        with patch.object(shop.catalog_service, "get_product", side_effect=without_tee):
            order = await checkout(shop, member["id"])

        assert [i["product_id"] for i in order["items"]] == [5]

    @pytest.mark.asyncio
    async def test_create_order_is_logged(self, shop: Any, member: dict) -> None:
        await shop.cart_service.add_item(member["id"], 5, 2)
        order = await checkout(shop, member["id"])

        entry = shop.activity_service.get_by_action("CREATE_ORDER")[0]
        assert entry["details"]["order_id"] == order["id"]
        assert entry["details"]["item_count"] == 1


class TestEndToEnd:
    """Checkout and cancellation scenarios across cart, stock and points."""

    @pytest.mark.asyncio
    async def test_checkout_below_free_shipping(self, shop: Any, member: dict) -> None:
        """Stock 5, three at 1000 each: total 3500, stock 2, cart empty, 35 points earned."""
        actor = member["id"]
        await shop.cart_service.add_item(actor, 1, 3)

        totals = await shop.cart_service.compute_totals(actor)
        assert (totals.subtotal, totals.shipping, totals.total) == (3000, 500, 3500)

        with pytest.raises(ActorRequiredError):
            await checkout(shop, "guest")

        order = await checkout(shop, actor)

        assert order["total_amount"] == 3500
        assert order["points_earned"] == 35
        assert await shop.stock_service.get_stock(1) == 2
        assert (await shop.cart_service.get_cart(actor))["items"] == []
        assert await shop.user_service.available_points(actor) == 500 + 35

    @pytest.mark.asyncio
    async def test_points_redemption_and_cancellation(
        self, shop: Any, override_settings: Any
    ) -> None:
        """200 points on a 1000 subtotal with free shipping: total 800, then cancel."""
        settings = override_settings(free_shipping_threshold=1000, signup_bonus_points=0)
        shop.settings = settings
        shop.cart_service.settings = settings
        shop.user_service.settings = settings
        user = await shop.user_service.register(email="a@example.com", password="password123", name="A")
        actor = user["id"]
        await shop.user_service.add_points(actor, 200, "gift")

        await shop.cart_service.add_item(actor, 1, 1)
        await shop.cart_service.set_points_used(actor, 200)
        order = await checkout(shop, actor)

        assert order["shipping"] == 0
        assert order["total_amount"] == 800
        assert order["points_earned"] == 8
        assert await shop.user_service.available_points(actor) == 8
        assert await shop.stock_service.get_stock(1) == 4

        result = await shop.cancel_order(actor, order["id"])

        assert result.order["status"] == "cancelled"
        assert result.points_fully_reversed is True
        assert await shop.stock_service.get_stock(1) == 5
        assert await shop.user_service.available_points(actor) == 200

        with pytest.raises(InvalidStatusTransitionError):
            await shop.cancel_order(actor, order["id"])


class TestCancelOrder:
    """Tests for cancel_order."""

    @pytest.mark.asyncio
    async def test_degraded_points_reversal_is_reported(self, shop: Any, member: dict) -> None:
        """Test that spent earned points leave the order cancelled with a shortfall."""
        actor = member["id"]
        await shop.cart_service.add_item(actor, 2, 1)
        order = await checkout(shop, actor)
        balance = await shop.user_service.available_points(actor)
        await shop.user_service.use_points(actor, balance, "spent elsewhere")

        result = await shop.cancel_order(actor, order["id"])

        assert result.order["status"] == "cancelled"
        assert result.points_fully_reversed is False
        assert result.unreversed_points == order["points_earned"]
        assert await shop.user_service.available_points(actor) == 0
        assert await shop.stock_service.get_stock(2) == 10

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["shipped", "delivered"])
    async def test_cannot_cancel_after_shipping(self, shop: Any, member: dict, status: str) -> None:
        actor = member["id"]
        await shop.cart_service.add_item(actor, 5, 2)
        order = await checkout(shop, actor)
        for step in ["processing", "shipped", "delivered"]:
            await shop.update_order_status(actor, order["id"], step)
            if step == status:
                break

        with pytest.raises(InvalidStatusTransitionError):
            await shop.cancel_order(actor, order["id"])

        assert (await shop.get_order(actor, order["id"]))["status"] == status
        assert await shop.stock_service.get_stock(5) == 18

    @pytest.mark.asyncio
    async def test_cancel_from_processing(self, shop: Any, member: dict) -> None:
        actor = member["id"]
        await shop.cart_service.add_item(actor, 5, 2)
        order = await checkout(shop, actor)
        await shop.update_order_status(actor, order["id"], "processing")

        result = await shop.cancel_order(actor, order["id"])

        assert result.order["status"] == "cancelled"
        assert await shop.stock_service.get_stock(5) == 20

    @pytest.mark.asyncio
    async def test_unknown_order(self, shop: Any, member: dict) -> None:
        with pytest.raises(OrderNotFoundError):
            await shop.cancel_order(member["id"], "missing")

    @pytest.mark.asyncio
    async def test_failed_stock_release_keeps_order_cancellable(self, shop: Any, member: dict) -> None:
        """Test that a contended release leaves the order pending so cancel can be retried."""
        actor = member["id"]
        await shop.cart_service.add_item(actor, 5, 2)
        order = await checkout(shop, actor)
        points_after_checkout = await shop.user_service.available_points(actor)

        with patch.object(shop.stock_service, "release", side_effect=StockConflictError(5)):
            with pytest.raises(StockConflictError):
                await shop.cancel_order(actor, order["id"])

        assert (await shop.get_order(actor, order["id"]))["status"] == "pending"
        assert await shop.stock_service.get_stock(5) == 18
        assert await shop.user_service.available_points(actor) == points_after_checkout

        result = await shop.cancel_order(actor, order["id"])

        assert result.order["status"] == "cancelled"
        assert await shop.stock_service.get_stock(5) == 20


class TestStatusTransitions:
    """Tests for the order status state machine."""

    @pytest.mark.asyncio
    async def test_forward_progression(self, shop: Any, member: dict) -> None:
        await shop.cart_service.add_item(member["id"], 5, 1)
        order = await checkout(shop, member["id"])

        for status in ["processing", "shipped", "delivered"]:
            order = await shop.update_order_status(member["id"], order["id"], status)
            assert order["status"] == status

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["pending", "shipped", "delivered", "refunded"])
    async def test_rejects_skips_repeats_and_unknown(self, shop: Any, member: dict, status: str) -> None:
        await shop.cart_service.add_item(member["id"], 5, 1)
        order = await checkout(shop, member["id"])

        with pytest.raises(InvalidStatusTransitionError):
            await shop.update_order_status(member["id"], order["id"], status)

    @pytest.mark.asyncio
    async def test_cancelled_status_goes_through_cancellation(self, shop: Any, member: dict) -> None:
        await shop.cart_service.add_item(member["id"], 5, 4)
        order = await checkout(shop, member["id"])

        updated = await shop.update_order_status(member["id"], order["id"], "cancelled")

        assert updated["status"] == "cancelled"
        assert await shop.stock_service.get_stock(5) == 20


class TestQueriesAndStats:
    """Tests for order history, admin lookups and aggregates."""

    @pytest.mark.asyncio
    async def test_history_newest_first_and_lookup(self, shop: Any, member: dict) -> None:
        actor = member["id"]
        await shop.cart_service.add_item(actor, 5, 1)
        first = await checkout(shop, actor)
        await shop.cart_service.add_item(actor, 5, 1)
        second = await checkout(shop, actor)

        orders = await shop.get_orders(actor)

        assert [o["id"] for o in orders] == [second["id"], first["id"]]
        assert (await shop.get_order(actor, first["id"]))["id"] == first["id"]
        assert await shop.get_order("user_other", first["id"]) is None
        assert await shop.find_order(first["id"]) == (actor, first)

    @pytest.mark.asyncio
    async def test_stats_exclude_cancelled_revenue(self, shop: Any, member: dict) -> None:
        actor = member["id"]
        await shop.cart_service.add_item(actor, 2, 1)
        kept = await checkout(shop, actor, payment_method="credit")
        await shop.cart_service.add_item(actor, 5, 1)
        cancelled = await checkout(shop, actor, payment_method="convenience")
        await shop.cancel_order(actor, cancelled["id"])

        stats = await shop.get_order_stats()

        assert stats["total_orders"] == 2
        assert stats["total_revenue"] == kept["total_amount"]
        assert stats["average_order_value"] == kept["total_amount"]
        assert stats["orders_by_status"] == {
            "pending": 1, "processing": 0, "shipped": 0, "delivered": 0, "cancelled": 1,
        }
        assert stats["orders_by_payment_method"] == {"credit": 1, "convenience": 1, "cod": 0}

    @pytest.mark.asyncio
    async def test_empty_stats(self, shop: Any) -> None:
        stats = await shop.get_order_stats()
        assert stats["total_orders"] == 0
        assert stats["average_order_value"] == 0

    @pytest.mark.asyncio
    async def test_product_sales_sorted_by_revenue(self, shop: Any, member: dict) -> None:
        actor = member["id"]
        await shop.cart_service.add_item(actor, 5, 2)
        await shop.cart_service.add_item(actor, 2, 1)
        await checkout(shop, actor)

        sales = await shop.get_product_sales()

        assert [s["product_id"] for s in sales] == [2, 5]
        assert sales[1] == {"product_id": 5, "product_name": "Notebook", "quantity": 2, "revenue": 1400}
