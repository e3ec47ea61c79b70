"""Shared stock ledger with optimistic concurrency control.

The ledger is one record shared by every actor. Each write is a
compare-and-swap on the store version, so a writer that read a stale ledger
never overwrites a newer one; it re-reads and re-checks instead.
"""

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
)

from src.core.config import get_settings
from src.core.store import get_store
from src.models.stock import StockLedger, StockLine, StockShortfall
from src.repositories.keys import STOCK_LEDGER_KEY
from src.services.activity_service import ActivityService
from src.services.catalog_service import Catalog, get_catalog
from src.services.errors import (
    InsufficientStockError,
    InvalidQuantityError,
    ProductNotFoundError,
    StockConflictError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StaleLedgerWrite(Exception):
    """A compare-and-swap found the ledger changed since it was read."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _merge_lines(lines: Iterable[StockLine]) -> dict[int, int]:
    """Sum requested quantities per product, keeping first-seen order."""
    merged: dict[int, int] = defaultdict(int)
    for line in lines:
        if line["quantity"] <= 0:
            raise InvalidQuantityError(line["quantity"])
        merged[line["product_id"]] += line["quantity"]
    return dict(merged)


class StockLedgerService:
    """Service owning the shared product stock ledger."""

    def __init__(
        self,
        catalog: Catalog | None = None,
        activity_service: ActivityService | None = None,
    ) -> None:
        """Initialize stock ledger service.

        Args:
            catalog: Optional catalog for testing.
            activity_service: Optional activity log for testing.
        """
        self.store = get_store()
        self.settings = get_settings()
        self._catalog = catalog
        self._activity_service = activity_service

    @property
    def catalog(self) -> Catalog:
        if self._catalog is None:
            self._catalog = get_catalog()
        return self._catalog

    @property
    def activity_service(self) -> ActivityService:
        if self._activity_service is None:
            self._activity_service = ActivityService()
        return self._activity_service

    def _read(self) -> tuple[StockLedger, int]:
        ledger, version = self.store.get_versioned(STOCK_LEDGER_KEY)
        if version == 0:
            return {"stocks": {}, "last_updated": _now()}, 0
        return ledger, version

    async def _mutate(self, mutation: Callable[[dict[str, int]], T]) -> T:
        """Apply a mutation to the stock map under compare-and-swap.

        The mutation may raise a ShopError to abort without writing. A lost
        race re-runs the mutation against the fresh ledger.

        Raises:
            StockConflictError: If every attempt lost its race.
        """
        attempts = self.settings.stock_cas_attempts
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(StaleLedgerWrite),
                stop=stop_after_attempt(attempts),
                before_sleep=before_sleep_log(logger, logging.WARNING),
            ):
                with attempt:
                    ledger, version = self._read()
                    result = mutation(ledger["stocks"])
                    ledger["last_updated"] = _now()
                    if not self.store.compare_and_set(STOCK_LEDGER_KEY, ledger, version):
                        raise StaleLedgerWrite()
                    return result
        except RetryError as e:
            raise StockConflictError(attempts) from e
        raise StockConflictError(attempts)

    async def get_ledger(self) -> StockLedger:
        ledger, _ = self._read()
        return ledger

    async def get_stock(self, product_id: int) -> int:
        """Remaining quantity for a product; missing entries read as 0."""
        ledger, _ = self._read()
        return ledger["stocks"].get(str(product_id), 0)

    async def decrement(self, product_id: int, quantity: int, actor_id: str = "system") -> int:
        """Remove quantity from a product's stock.

        Args:
            product_id: Product to decrement.
            quantity: Positive quantity to remove.
            actor_id: Actor recorded in the activity log.

        Returns:
            int: Remaining stock after the decrement.

        Raises:
            InsufficientStockError: If current stock is below quantity; nothing is written.
        """
        if quantity <= 0:
            raise InvalidQuantityError(quantity)

        def apply(stocks: dict[str, int]) -> int:
            current = stocks.get(str(product_id), 0)
            if current < quantity:
                raise InsufficientStockError(product_id, quantity, current)
            stocks[str(product_id)] = current - quantity
            return current - quantity

        remaining = await self._mutate(apply)
        self.activity_service.log(
            actor_id, "STOCK_UPDATED", {"product_id": product_id, "quantity": -quantity, "new_stock": remaining}
        )
        return remaining

    async def increment(self, product_id: int, quantity: int, actor_id: str = "system") -> int:
        """Add quantity back to a product's stock.

        There is no upper bound: the ledger may exceed its initialized value
        if increments outnumber matching decrements.

        Returns:
            int: Stock after the increment.
        """
        if quantity <= 0:
            raise InvalidQuantityError(quantity)

        def apply(stocks: dict[str, int]) -> int:
            stocks[str(product_id)] = stocks.get(str(product_id), 0) + quantity
            return stocks[str(product_id)]

        new_stock = await self._mutate(apply)
        self.activity_service.log(
            actor_id, "STOCK_RESTORED", {"product_id": product_id, "quantity": quantity, "new_stock": new_stock}
        )
        return new_stock

    async def check_availability(self, lines: Iterable[StockLine]) -> list[StockShortfall]:
        """Check several lines against one ledger snapshot without writing.

        Returns:
            list[StockShortfall]: Lines that cannot be satisfied; empty if all can.
        """
        merged = _merge_lines(lines)
        ledger, _ = self._read()
        return self._shortfalls(ledger["stocks"], merged)

    @staticmethod
    def _shortfalls(stocks: dict[str, int], merged: dict[int, int]) -> list[StockShortfall]:
        shortfalls: list[StockShortfall] = []
        for product_id, requested in merged.items():
            available = stocks.get(str(product_id), 0)
            if available < requested:
                shortfalls.append(
                    {"product_id": product_id, "requested": requested, "available": available}
                )
        return shortfalls

    async def reserve(self, lines: Iterable[StockLine], actor_id: str = "system") -> None:
        """Decrement several lines all-or-nothing.

        Phase one validates every line against a single snapshot; phase two
        commits all decrements in one write. If any line is short nothing is
        mutated.

        Raises:
            InsufficientStockError: For the first short line.
        """
        merged = _merge_lines(lines)

        def apply(stocks: dict[str, int]) -> None:
            shortfalls = self._shortfalls(stocks, merged)
            if shortfalls:
                first = shortfalls[0]
                raise InsufficientStockError(first["product_id"], first["requested"], first["available"])
            for product_id, quantity in merged.items():
                stocks[str(product_id)] -= quantity

        await self._mutate(apply)
        self.activity_service.log(
            actor_id,
            "STOCK_UPDATED",
            {"items": [{"product_id": pid, "quantity": -qty} for pid, qty in merged.items()]},
        )

    async def release(self, lines: Iterable[StockLine], actor_id: str = "system") -> None:
        """Increment several lines in one write (cancellation, rollback)."""
        merged = _merge_lines(lines)

        def apply(stocks: dict[str, int]) -> None:
            for product_id, quantity in merged.items():
                stocks[str(product_id)] = stocks.get(str(product_id), 0) + quantity

        await self._mutate(apply)
        self.activity_service.log(
            actor_id,
            "STOCK_RESTORED",
            {"items": [{"product_id": pid, "quantity": qty} for pid, qty in merged.items()]},
        )

    async def initialize(self) -> StockLedger:
        """Seed the ledger from the initial stock source.

        Falls back to each product's declared ``initial_stock`` when the
        source is unavailable. Any existing ledger is replaced.
        """
        if self.catalog.initial_stock is not None:
            stocks = dict(self.catalog.initial_stock)
            source = "initial stock file"
        else:
            stocks = {str(p["id"]): p.get("initial_stock", 0) for p in self.catalog.products}
            source = "product defaults"

        ledger: StockLedger = {"stocks": stocks, "last_updated": _now()}
        self.store.set(STOCK_LEDGER_KEY, ledger)
        logger.info("Stock ledger initialized from %s (%d products)", source, len(stocks))
        return ledger

    async def ensure_initialized(self) -> bool:
        """Initialize the ledger only if none exists yet.

        Returns:
            bool: True if the ledger was created.
        """
        _, version = self.store.get_versioned(STOCK_LEDGER_KEY)
        if version:
            return False
        await self.initialize()
        return True

    async def list_stock(self) -> list[dict[str, Any]]:
        """Every catalog product with its current quantity."""
        ledger, _ = self._read()
        return [
            {
                "product_id": product["id"],
                "name": product["name"],
                "stock": ledger["stocks"].get(str(product["id"]), 0),
            }
            for product in self.catalog.products
        ]

    async def set_stock(self, product_id: int, quantity: int, actor_id: str = "admin") -> int:
        """Overwrite a product's stock with an absolute quantity.

        Raises:
            ProductNotFoundError: If the product is not in the catalog.
            InvalidQuantityError: If quantity is negative.
        """
        if self.catalog.product(product_id) is None:
            raise ProductNotFoundError(product_id)
        if quantity < 0:
            raise InvalidQuantityError(quantity)

        def apply(stocks: dict[str, int]) -> int:
            previous = stocks.get(str(product_id), 0)
            stocks[str(product_id)] = quantity
            return previous

        previous = await self._mutate(apply)
        self.activity_service.log(
            actor_id, "STOCK_UPDATED", {"product_id": product_id, "previous": previous, "new_stock": quantity}
        )
        return quantity
