"""Pricing policy: coupons, shipping, totals and points accrual.

All amounts are integer currency units. Every function here is pure.
"""

from dataclasses import dataclass
from typing import Any

from src.services.errors import UnknownCouponError


@dataclass(frozen=True)
class Coupon:
    """A fixed-percentage coupon."""

    code: str
    percent: int
    members_only: bool = False
    description: str = ""


COUPONS: dict[str, Coupon] = {
    coupon.code: coupon
    for coupon in (
        Coupon("WELCOME10", 10, description="10% off your order"),
        Coupon("MEMBER15", 15, members_only=True, description="15% off for members"),
        Coupon("JASST20", 20, description="20% off event coupon"),
    )
}


@dataclass(frozen=True)
class CartTotals:
    """Priced summary of a cart."""

    subtotal: int
    discount: int
    points_discount: int
    shipping: int
    total: int

    def to_dict(self) -> dict[str, int]:
        return {
            "subtotal": self.subtotal,
            "discount": self.discount,
            "points_discount": self.points_discount,
            "shipping": self.shipping,
            "total": self.total,
        }


def normalize_coupon_code(code: str) -> str:
    """Match a code against the allow-list, ignoring case and surrounding whitespace.

    Raises:
        UnknownCouponError: If the code is not on the allow-list.
    """
    normalized = code.strip().upper()
    if normalized not in COUPONS:
        raise UnknownCouponError(code)
    return normalized


def coupon_discount(subtotal: int, coupon_code: str | None, is_member: bool) -> int:
    """Discount granted by a coupon for a subtotal.

    Member-only coupons yield 0 for non-members even when applied.
    """
    if not coupon_code:
        return 0
    coupon = COUPONS.get(coupon_code.upper())
    if coupon is None:
        raise UnknownCouponError(coupon_code)
    if coupon.members_only and not is_member:
        return 0
    return subtotal * coupon.percent // 100


def shipping_fee(subtotal: int, free_shipping_threshold: int, flat_fee: int) -> int:
    return 0 if subtotal >= free_shipping_threshold else flat_fee


def order_total(subtotal: int, discount: int, points_used: int, shipping: int) -> int:
    return max(0, subtotal - discount - points_used + shipping)


def points_earned(total: int, accrual_percent: int) -> int:
    """Points accrued on a total, rounded down."""
    return total * accrual_percent // 100


def compute_totals(
    subtotal: int,
    coupon_code: str | None,
    points_used: int,
    is_member: bool,
    settings: Any,
) -> CartTotals:
    """Compute the full priced projection for a subtotal.

    Args:
        subtotal: Sum of applied price times quantity over all lines.
        coupon_code: Normalized coupon code or None.
        points_used: Points the actor redeems.
        is_member: Whether the actor is an authenticated member.
        settings: Settings providing shipping policy.

    Returns:
        CartTotals: Subtotal, discounts, shipping and total.
    """
    discount = coupon_discount(subtotal, coupon_code, is_member)
    shipping = shipping_fee(subtotal, settings.free_shipping_threshold, settings.shipping_fee)
    return CartTotals(
        subtotal=subtotal,
        discount=discount,
        points_discount=points_used,
        shipping=shipping,
        total=order_total(subtotal, discount, points_used, shipping),
    )
