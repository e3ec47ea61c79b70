"""Cart aggregate type definitions."""

from typing import TypedDict


class SelectedOptions(TypedDict, total=False):
    """Options chosen for a line item."""

    size: str
    color: str


class CartItem(TypedDict):
    """A (product, options) pair with a quantity inside a cart."""

    product_id: int
    quantity: int
    options: SelectedOptions
    added_at: str


class Cart(TypedDict):
    """Per-actor cart aggregate.

    ``items`` keeps insertion order. ``points_used`` is the amount of points
    the actor intends to redeem, not a running total.
    """

    items: list[CartItem]
    coupon_code: str | None
    points_used: int
    last_updated: str
