"""Catalog reader: products and categories loaded from static JSON."""

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from src.core.config import get_settings
from src.models.product import Category, Product

logger = logging.getLogger(__name__)

PRODUCTS_FILE = "products.json"
CATEGORIES_FILE = "categories.json"
INITIAL_STOCK_FILE = "initial_stock.json"

MAX_RELATED_PRODUCTS = 4


@dataclass
class Catalog:
    """Immutable snapshot of the static catalog."""

    products: list[Product]
    categories: list[Category] = field(default_factory=list)
    initial_stock: dict[str, int] | None = None

    def __post_init__(self) -> None:
        self._by_id = {product["id"]: product for product in self.products}

    def product(self, product_id: int) -> Product | None:
        return self._by_id.get(product_id)


def load_catalog(data_dir: Path) -> Catalog:
    """Load products, categories and the initial stock source from a directory.

    The initial stock file is optional; when it is missing or unreadable the
    stock ledger falls back to each product's ``initial_stock``.

    Args:
        data_dir: Directory holding the catalog JSON files.

    Returns:
        Catalog: Loaded catalog.
    """
    with open(data_dir / PRODUCTS_FILE, encoding="utf-8") as f:
        products = json.load(f)

    categories: list[Category] = []
    categories_path = data_dir / CATEGORIES_FILE
    if categories_path.exists():
        with open(categories_path, encoding="utf-8") as f:
            categories = json.load(f)

    initial_stock = None
    stock_path = data_dir / INITIAL_STOCK_FILE
    try:
        with open(stock_path, encoding="utf-8") as f:
            initial_stock = {str(k): int(v) for k, v in json.load(f)["stocks"].items()}
    except (OSError, ValueError, KeyError) as e:
        logger.warning("Initial stock source unavailable (%s); using product defaults", e)

    logger.info("Loaded catalog: %d products, %d categories", len(products), len(categories))
    return Catalog(products=products, categories=categories, initial_stock=initial_stock)


@lru_cache
def get_catalog() -> Catalog:
    """Get the cached catalog for the configured data directory."""
    return load_catalog(Path(get_settings().catalog_data_dir))


def calculate_price(product: Product, is_member: bool) -> int:
    """Price basis for an actor: member price for members, regular otherwise."""
    return product["member_price"] if is_member else product["price"]


class CatalogService:
    """Service for reading the product catalog."""

    def __init__(self, catalog: Catalog | None = None) -> None:
        """Initialize catalog service.

        Args:
            catalog: Optional catalog for testing; defaults to the cached one.
        """
        self.catalog = catalog or get_catalog()

    async def get_products(self) -> list[Product]:
        return list(self.catalog.products)

    async def get_product(self, product_id: int) -> Product | None:
        return self.catalog.product(product_id)

    async def get_categories(self) -> list[Category]:
        return sorted(self.catalog.categories, key=lambda c: c.get("order", 0))

    async def get_category_by_slug(self, slug: str) -> Category | None:
        return next((c for c in self.catalog.categories if c["slug"] == slug), None)

    async def search_products(self, query: str) -> list[Product]:
        """Case-insensitive search over name, description, category and tags.

        Args:
            query: Search text.

        Returns:
            list[Product]: Matching products in catalog order.
        """
        term = query.strip().lower()
        if not term:
            return await self.get_products()
        return [
            p
            for p in self.catalog.products
            if term in p["name"].lower()
            or term in p.get("description", "").lower()
            or term in p["category"].lower()
            or any(term in tag.lower() for tag in p.get("tags", []))
        ]

    async def get_related_products(self, product_id: int) -> list[Product]:
        """Explicitly related products first, then same-category fill-ins.

        At most four products are returned. Unknown ids yield an empty list.
        """
        product = self.catalog.product(product_id)
        if product is None:
            return []

        related = [
            self.catalog.product(rid)
            for rid in product.get("related", [])
            if self.catalog.product(rid) is not None
        ]
        seen = {product_id} | {p["id"] for p in related}
        for candidate in self.catalog.products:
            if len(related) >= MAX_RELATED_PRODUCTS:
                break
            if candidate["category"] == product["category"] and candidate["id"] not in seen:
                related.append(candidate)
                seen.add(candidate["id"])
        return related[:MAX_RELATED_PRODUCTS]

    async def get_featured_products(self) -> list[Product]:
        return [p for p in self.catalog.products if p.get("featured")]

    async def get_new_products(self) -> list[Product]:
        return [p for p in self.catalog.products if p.get("new")]

    async def get_products_by_category(self, category: str) -> list[Product]:
        return [p for p in self.catalog.products if p["category"] == category]


def get_catalog_service() -> CatalogService:
    """Dependency provider for catalog routes."""
    return CatalogService()
