"""Unit tests for CartService."""

from typing import Any

import pytest

from src.services.cart_service import line_key, normalize_options
from src.services.errors import (
    ActorRequiredError,
    CartItemNotFoundError,
    InsufficientPointsError,
    InsufficientStockError,
    InvalidQuantityError,
    ProductNotFoundError,
    UnknownCouponError,
)

GUEST = "guest:session-1"


class TestLineIdentity:
    """Tests for option normalization."""

    def test_unset_options_compare_equal(self) -> None:
        assert normalize_options({"size": None, "color": ""}) == {}
        assert line_key(1, None) == line_key(1, {"size": None})

    def test_option_order_is_irrelevant(self) -> None:
        assert line_key(1, {"size": "M", "color": "white"}) == line_key(1, {"color": "white", "size": "M"})


class TestAddItem:
    """Tests for add_item."""

    @pytest.mark.asyncio
    async def test_same_options_merge_into_one_line(self, shop: Any) -> None:
        """Test that adding q1 then q2 yields one line of q1 + q2."""
        carts = shop.cart_service
        await carts.add_item(GUEST, 1, 2, {"size": "M"})
        cart = await carts.add_item(GUEST, 1, 3, {"size": "M"})

        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 5

    @pytest.mark.asyncio
    async def test_different_options_are_separate_lines(self, shop: Any) -> None:
        carts = shop.cart_service
        await carts.add_item(GUEST, 1, 1, {"size": "M"})
        cart = await carts.add_item(GUEST, 1, 1, {"size": "L"})

        assert len(cart["items"]) == 2
        assert await carts.item_count(GUEST) == 2

    @pytest.mark.asyncio
    async def test_exceeding_stock_keeps_previous_quantity(self, shop: Any) -> None:
        """Test that a merge beyond stock fails and leaves q1 in place."""
        carts = shop.cart_service
        await carts.add_item(GUEST, 3, 2)

        with pytest.raises(InsufficientStockError):
            await carts.add_item(GUEST, 3, 2)

        cart = await carts.get_cart(GUEST)
        assert cart["items"][0]["quantity"] == 2

    @pytest.mark.asyncio
    async def test_adding_does_not_reserve_stock(self, shop: Any) -> None:
        await shop.cart_service.add_item(GUEST, 3, 3)
        assert await shop.stock_service.get_stock(3) == 3

    @pytest.mark.asyncio
    async def test_unknown_product(self, shop: Any) -> None:
        with pytest.raises(ProductNotFoundError):
            await shop.cart_service.add_item(GUEST, 999, 1)

    @pytest.mark.asyncio
    async def test_non_positive_quantity(self, shop: Any) -> None:
        with pytest.raises(InvalidQuantityError):
            await shop.cart_service.add_item(GUEST, 1, 0)


class TestUpdateAndRemove:
    """Tests for set_item_quantity, remove_item and clear."""

    @pytest.mark.asyncio
    async def test_set_quantity(self, shop: Any) -> None:
        carts = shop.cart_service
        await carts.add_item(GUEST, 2, 1)
        cart = await carts.set_item_quantity(GUEST, 2, 4)
        assert cart["items"][0]["quantity"] == 4

    @pytest.mark.asyncio
    async def test_zero_quantity_removes_line(self, shop: Any) -> None:
        carts = shop.cart_service
        await carts.add_item(GUEST, 2, 1)
        cart = await carts.set_item_quantity(GUEST, 2, 0)
        assert cart["items"] == []

    @pytest.mark.asyncio
    async def test_set_quantity_beyond_stock(self, shop: Any) -> None:
        carts = shop.cart_service
        await carts.add_item(GUEST, 4, 1)
        with pytest.raises(InsufficientStockError):
            await carts.set_item_quantity(GUEST, 4, 3)

    @pytest.mark.asyncio
    async def test_remove_missing_line(self, shop: Any) -> None:
        with pytest.raises(CartItemNotFoundError):
            await shop.cart_service.remove_item(GUEST, 2, {"size": "M"})

    @pytest.mark.asyncio
    async def test_clear_resets_coupon_and_points(self, shop: Any, member: dict) -> None:
        carts = shop.cart_service
        await carts.add_item(member["id"], 1, 1)
        await carts.apply_coupon(member["id"], "welcome10")
        await carts.set_points_used(member["id"], 100)

        cart = await carts.clear(member["id"])

        assert cart["items"] == []
        assert cart["coupon_code"] is None
        assert cart["points_used"] == 0


class TestAvailability:
    """Tests for check_availability."""

    @pytest.mark.asyncio
    async def test_covered_cart_has_no_shortfalls(self, shop: Any) -> None:
        await shop.cart_service.add_item(GUEST, 2, 3)
        assert await shop.cart_service.check_availability(GUEST) == []

    @pytest.mark.asyncio
    async def test_option_variants_share_stock(self, shop: Any) -> None:
        """Test that lines of one product are summed against its stock."""
        carts = shop.cart_service
        await carts.add_item(GUEST, 1, 3, {"size": "M"})
        await carts.add_item(GUEST, 1, 2, {"size": "L"})
        await shop.stock_service.set_stock(1, 4)

        shortfalls = await carts.check_availability(GUEST)

        assert shortfalls == [{"product_id": 1, "requested": 5, "available": 4}]

    @pytest.mark.asyncio
    async def test_empty_cart(self, shop: Any) -> None:
        assert await shop.cart_service.check_availability(GUEST) == []


class TestCouponsAndPoints:
    """Tests for coupon and points handling on the cart."""

    @pytest.mark.asyncio
    async def test_recognized_coupon_is_normalized(self, shop: Any) -> None:
        cart = await shop.cart_service.apply_coupon(GUEST, "jasst20")
        assert cart["coupon_code"] == "JASST20"

    @pytest.mark.asyncio
    async def test_unknown_coupon_leaves_cart_unchanged(self, shop: Any) -> None:
        carts = shop.cart_service
        await carts.apply_coupon(GUEST, "WELCOME10")

        with pytest.raises(UnknownCouponError):
            await carts.apply_coupon(GUEST, "BOGUS")

        assert (await carts.get_cart(GUEST))["coupon_code"] == "WELCOME10"

    @pytest.mark.asyncio
    async def test_guest_cannot_use_points(self, shop: Any) -> None:
        with pytest.raises(ActorRequiredError):
            await shop.cart_service.set_points_used(GUEST, 10)

    @pytest.mark.asyncio
    async def test_points_capped_by_balance(self, shop: Any, member: dict) -> None:
        with pytest.raises(InsufficientPointsError):
            await shop.cart_service.set_points_used(member["id"], 501)

    @pytest.mark.asyncio
    async def test_points_are_set_not_added(self, shop: Any, member: dict) -> None:
        carts = shop.cart_service
        await carts.set_points_used(member["id"], 300)
        cart = await carts.set_points_used(member["id"], 100)
        assert cart["points_used"] == 100


class TestTotals:
    """Tests for display items and totals."""

    @pytest.mark.asyncio
    async def test_guest_pays_regular_price(self, shop: Any) -> None:
        await shop.cart_service.add_item(GUEST, 2, 1)

        items = await shop.cart_service.compute_display_items(GUEST)
        totals = await shop.cart_service.compute_totals(GUEST)

        assert items[0]["applied_price"] == 5000
        assert totals.subtotal == 5000
        assert totals.shipping == 0

    @pytest.mark.asyncio
    async def test_member_pays_member_price(self, shop: Any, member: dict) -> None:
        await shop.cart_service.add_item(member["id"], 2, 1)

        totals = await shop.cart_service.compute_totals(member["id"])

        assert totals.subtotal == 4500
        assert totals.shipping == 500
        assert totals.total == 5000

    @pytest.mark.asyncio
    async def test_member_coupon_needs_membership(self, shop: Any, member: dict) -> None:
        carts = shop.cart_service
        await carts.add_item(GUEST, 1, 2)
        await carts.apply_coupon(GUEST, "MEMBER15")
        assert (await carts.compute_totals(GUEST)).discount == 0

        await carts.add_item(member["id"], 1, 2)
        await carts.apply_coupon(member["id"], "MEMBER15")
        assert (await carts.compute_totals(member["id"])).discount == 300

    @pytest.mark.asyncio
    async def test_totals_are_idempotent(self, shop: Any, member: dict) -> None:
        carts = shop.cart_service
        await carts.add_item(member["id"], 3, 2)
        await carts.set_points_used(member["id"], 50)

        first = await carts.compute_totals(member["id"])
        second = await carts.compute_totals(member["id"])

        assert first == second
        assert first.total == max(0, first.subtotal - first.discount - 50 + first.shipping)

    @pytest.mark.asyncio
    async def test_cart_view(self, shop: Any) -> None:
        await shop.cart_service.add_item(GUEST, 5, 3)

        view = await shop.cart_service.get_cart_view(GUEST)

        assert view["item_count"] == 3
        assert view["totals"]["total"] == 2400 + 500
        assert view["items"][0]["product"]["name"] == "Notebook"


class TestGuestMigration:
    """Tests for migrate_guest_cart."""

    @pytest.mark.asyncio
    async def test_merges_and_empties_guest_cart(self, shop: Any, member: dict) -> None:
        carts = shop.cart_service
        await carts.add_item(member["id"], 1, 1, {"size": "M"})
        await carts.add_item(GUEST, 1, 2, {"size": "M"})
        await carts.add_item(GUEST, 5, 1)

        cart = await carts.migrate_guest_cart(member["id"], GUEST)

        assert {(i["product_id"], i["quantity"]) for i in cart["items"]} == {(1, 3), (5, 1)}
        assert (await carts.get_cart(GUEST))["items"] == []

    @pytest.mark.asyncio
    async def test_empty_guest_cart_is_a_no_op(self, shop: Any, member: dict) -> None:
        await shop.cart_service.add_item(member["id"], 5, 1)
        cart = await shop.cart_service.migrate_guest_cart(member["id"], GUEST)
        assert len(cart["items"]) == 1

    @pytest.mark.asyncio
    async def test_guest_activity_is_not_logged(self, shop: Any) -> None:
        await shop.cart_service.add_item(GUEST, 1, 1)
        assert shop.activity_service.get_by_action("ADD_TO_CART") == []
