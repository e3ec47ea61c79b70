"""Catalog Pydantic schemas for API responses."""

from pydantic import BaseModel, ConfigDict, Field


class ProductOptionsSchema(BaseModel):
    sizes: list[str] = Field(default_factory=list, description="Available sizes")
    colors: list[str] = Field(default_factory=list, description="Available colors")


class ProductResponse(BaseModel):
    """Schema for product API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Product id")
    name: str = Field(description="Product name")
    price: int = Field(ge=0, description="Regular price")
    member_price: int = Field(ge=0, description="Price for logged-in members")
    description: str = Field(default="", description="Short description")
    details: str = Field(default="", description="Long description")
    category: str = Field(description="Category slug")
    tags: list[str] = Field(default_factory=list, description="Search tags")
    image_url: str | None = Field(default=None, description="Main image URL")
    thumbnails: list[str] = Field(default_factory=list, description="Thumbnail URLs")
    options: ProductOptionsSchema = Field(default_factory=ProductOptionsSchema, description="Option axes")
    related: list[int] = Field(default_factory=list, description="Related product ids")
    rating: float = Field(default=0, description="Average rating")
    review_count: int = Field(default=0, description="Number of reviews")
    featured: bool = Field(default=False, description="Featured on the home page")
    new: bool = Field(default=False, description="Marked as new arrival")
    date_added: str | None = Field(default=None, description="Date added to the catalog")


class ProductListResponse(BaseModel):
    products: list[ProductResponse] = Field(description="Products")
    total: int = Field(description="Number of products returned")


class CategoryResponse(BaseModel):
    """Schema for category API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Category id")
    name: str = Field(description="Display name")
    slug: str = Field(description="URL slug, matches Product.category")
    description: str = Field(default="", description="Description")
    icon: str = Field(default="", description="Icon name")
    featured: bool = Field(default=False, description="Featured category")
    order: int = Field(default=0, description="Display order")


class StockResponse(BaseModel):
    product_id: int = Field(description="Product id")
    stock: int = Field(ge=0, description="Remaining quantity in the shared ledger")
