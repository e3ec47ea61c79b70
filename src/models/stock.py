"""Stock ledger type definitions."""

from typing import TypedDict


class StockLedger(TypedDict):
    """The single shared map of remaining quantity per product.

    Keys of ``stocks`` are product ids rendered as strings.
    """

    stocks: dict[str, int]
    last_updated: str


class StockLine(TypedDict):
    """A product/quantity pair used for multi-line stock checks."""

    product_id: int
    quantity: int


class StockShortfall(TypedDict):
    """A line that cannot be satisfied by the current ledger."""

    product_id: int
    requested: int
    available: int
