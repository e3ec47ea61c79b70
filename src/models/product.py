"""Catalog record type definitions."""

from typing import TypedDict


class ProductOptions(TypedDict, total=False):
    """Selectable option axes offered for a product."""

    sizes: list[str]
    colors: list[str]


class Product(TypedDict):
    """Catalog product as loaded from products.json.

    Stock is not part of the product; it lives in the shared stock ledger.
    """

    id: int
    name: str
    price: int
    member_price: int
    description: str
    details: str
    initial_stock: int
    category: str
    tags: list[str]
    image_url: str
    thumbnails: list[str]
    options: ProductOptions
    related: list[int]
    rating: float
    review_count: int
    featured: bool
    new: bool
    date_added: str


class Category(TypedDict):
    """Catalog category as loaded from categories.json."""

    id: int
    name: str
    slug: str
    description: str
    icon: str
    featured: bool
    order: int
