"""Catalog API routes: products, categories and stock levels."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.api.middleware.error_handler import NotFoundError
from src.schemas.product import CategoryResponse, ProductListResponse, ProductResponse, StockResponse
from src.services.catalog_service import CatalogService, get_catalog_service
from src.services.stock_service import StockLedgerService

router = APIRouter(prefix="/products", tags=["products"])
categories_router = APIRouter(prefix="/categories", tags=["categories"])


def _product_list(products: list[dict]) -> ProductListResponse:
    return ProductListResponse(products=[ProductResponse(**p) for p in products], total=len(products))


@router.get("", response_model=ProductListResponse)
async def list_products(
    q: Annotated[str | None, Query(description="Search name, description, category and tags")] = None,
    category: Annotated[str | None, Query(description="Filter by category slug")] = None,
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ProductListResponse:
    """List products, optionally searched and filtered by category.

    Products are publicly readable.
    """
    if q:
        products = await catalog_service.search_products(q)
    else:
        products = await catalog_service.get_products()
    if category:
        products = [p for p in products if p["category"] == category]
    return _product_list(products)


@router.get("/featured", response_model=ProductListResponse)
async def list_featured_products(
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ProductListResponse:
    return _product_list(await catalog_service.get_featured_products())


@router.get("/new", response_model=ProductListResponse)
async def list_new_products(
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ProductListResponse:
    return _product_list(await catalog_service.get_new_products())


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    product = await catalog_service.get_product(product_id)
    if not product:
        raise NotFoundError("Product not found")
    return ProductResponse(**product)


@router.get("/{product_id}/related", response_model=ProductListResponse)
async def list_related_products(
    product_id: int,
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ProductListResponse:
    """Explicitly related products first, then others from the same category."""
    if not await catalog_service.get_product(product_id):
        raise NotFoundError("Product not found")
    return _product_list(await catalog_service.get_related_products(product_id))


@router.get("/{product_id}/stock", response_model=StockResponse)
async def get_product_stock(
    product_id: int,
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> StockResponse:
    if not await catalog_service.get_product(product_id):
        raise NotFoundError("Product not found")
    stock = await StockLedgerService(catalog=catalog_service.catalog).get_stock(product_id)
    return StockResponse(product_id=product_id, stock=stock)


@categories_router.get("", response_model=list[CategoryResponse])
async def list_categories(
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> list[CategoryResponse]:
    return [CategoryResponse(**c) for c in await catalog_service.get_categories()]


@categories_router.get("/{slug}", response_model=ProductListResponse)
async def list_category_products(
    slug: str,
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ProductListResponse:
    """Products in a category, looked up by slug."""
    category = await catalog_service.get_category_by_slug(slug)
    if not category:
        raise NotFoundError("Category not found")
    return _product_list(await catalog_service.get_products_by_category(slug))
