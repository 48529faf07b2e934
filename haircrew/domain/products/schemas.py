"""Product domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import SKU_PATTERN, validate_image_url

BULK_ACTIONS = ("delete", "activate", "deactivate")


class ProductListQuery(BaseModel):
    """Storefront listing filters; any invalid value rejects the whole query"""

    category: Optional[str] = None
    search: Optional[str] = None
    priceRange: Optional[Literal["all", "0-500", "500-1000", "1000-2000", "2000+"]] = None
    stockStatus: Optional[Literal["all", "in-stock", "low-stock", "out-of-stock"]] = None
    sortBy: Literal["newest", "oldest", "price-low", "price-high", "name-asc", "name-desc"] = "newest"
    page: int = 1
    pageSize: int = 9

    @field_validator("page", "pageSize", mode="before")
    @classmethod
    def digits_only(cls, v):
        if isinstance(v, str) and not v.isdigit():
            raise ValueError("must be a whole number")
        return v

    @field_validator("page", "pageSize")
    @classmethod
    def at_least_one(cls, v):
        if v < 1:
            raise ValueError("must be at least 1")
        return v


class ProductCreate(BaseModel):
    """Schema for creating a new product"""

    name: str
    description: Optional[str] = None
    price: float
    comparePrice: Optional[float] = None
    stock: int
    categoryId: str
    images: list[str]
    sku: str
    weight: Optional[float] = None
    dimensions: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if len(v) < 2:
            raise ValueError("Product name must be at least 2 characters")
        if len(v) > 100:
            raise ValueError("Product name must be less than 100 characters")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        if v is None:
            return v
        if len(v) < 10:
            raise ValueError("Description must be at least 10 characters")
        if len(v) > 1000:
            raise ValueError("Description must be less than 1000 characters")
        return v

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v < 0.01:
            raise ValueError("Price must be at least ₹0.01")
        if v > 100000:
            raise ValueError("Price must be less than ₹100,000")
        return v

    @field_validator("comparePrice")
    @classmethod
    def validate_compare_price(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Compare price must be positive")
        return v

    @field_validator("stock")
    @classmethod
    def validate_stock(cls, v):
        if v < 0:
            raise ValueError("Stock cannot be negative")
        if v > 10000:
            raise ValueError("Stock must be less than 10,000")
        return v

    @field_validator("categoryId")
    @classmethod
    def validate_category(cls, v):
        if not v:
            raise ValueError("Category is required")
        return v

    @field_validator("images")
    @classmethod
    def validate_images(cls, v):
        if not v:
            raise ValueError("At least one image is required")
        return [validate_image_url(url) for url in v]

    @field_validator("sku")
    @classmethod
    def validate_sku(cls, v):
        if len(v) < 3:
            raise ValueError("SKU must be at least 3 characters")
        if len(v) > 50:
            raise ValueError("SKU must be less than 50 characters")
        if not SKU_PATTERN.match(v):
            raise ValueError("SKU can only contain uppercase letters, numbers, and hyphens")
        return v

    @field_validator("weight")
    @classmethod
    def validate_weight(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Weight must be positive")
        return v

    @field_validator("dimensions")
    @classmethod
    def validate_dimensions(cls, v):
        if v is not None and len(v) > 100:
            raise ValueError("Dimensions must be less than 100 characters")
        return v


class ProductUpdate(BaseModel):
    """Partial update; only provided fields change"""

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    comparePrice: Optional[float] = None
    stock: Optional[int] = None
    categoryId: Optional[str] = None
    images: Optional[list[str]] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    weight: Optional[float] = None
    dimensions: Optional[str] = None
    isActive: Optional[bool] = None
    isFeatured: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not 1 <= len(v) <= 200:
            raise ValueError("Product name must be between 1 and 200 characters")
        return v

    @field_validator("price", "comparePrice", "weight")
    @classmethod
    def validate_positive(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator("stock")
    @classmethod
    def validate_stock(cls, v):
        if v is not None and v < 0:
            raise ValueError("Stock cannot be negative")
        return v

    @field_validator("sku")
    @classmethod
    def validate_sku(cls, v):
        if v is not None and not 1 <= len(v) <= 50:
            raise ValueError("SKU must be less than 50 characters")
        return v

    @field_validator("barcode", "dimensions")
    @classmethod
    def validate_short_text(cls, v, info):
        if v is not None and len(v) > 100:
            raise ValueError(f"{info.field_name.capitalize()} must be less than 100 characters")
        return v


class StockUpdate(BaseModel):
    stock: int

    @field_validator("stock")
    @classmethod
    def validate_stock(cls, v):
        if v < 0:
            raise ValueError("Invalid stock value")
        return v


class BulkActionRequest(BaseModel):
    action: Optional[str] = None
    ids: Optional[list[str]] = None


class CategorySummary(BaseModel):
    id: str
    name: str
    slug: str


class ProductResponse(BaseModel):
    """Schema for product response"""

    id: str
    name: str
    slug: str
    description: Optional[str]
    price: float
    comparePrice: Optional[float]
    images: list[str]
    sku: Optional[str]
    barcode: Optional[str]
    weight: Optional[float]
    dimensions: Optional[str]
    stock: int
    isActive: bool
    isFeatured: bool
    categoryId: str
    category: Optional[CategorySummary] = None
    createdAt: Optional[datetime]
    updatedAt: Optional[datetime]

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, p, include_category: bool = False) -> "ProductResponse":
        category = None
        if include_category and p.category is not None:
            category = CategorySummary(id=p.category.id, name=p.category.name, slug=p.category.slug)
        return cls(
            id=p.id,
            name=p.name,
            slug=p.slug,
            description=p.description,
            price=p.price,
            comparePrice=p.compare_price,
            images=p.images or [],
            sku=p.sku,
            barcode=p.barcode,
            weight=p.weight,
            dimensions=p.dimensions,
            stock=p.stock,
            isActive=p.is_active,
            isFeatured=p.is_featured,
            categoryId=p.category_id,
            category=category,
            createdAt=p.created_at,
            updatedAt=p.updated_at,
        )


class ProductCard(BaseModel):
    """Compact product shape for latest/related carousels"""

    id: str
    name: str
    price: float
    images: list[str]
    slug: str
    categoryId: Optional[str] = None

    @classmethod
    def from_model(cls, p) -> "ProductCard":
        return cls(
            id=p.id, name=p.name, price=p.price, images=p.images or [], slug=p.slug, categoryId=p.category_id
        )


class ProductListResponse(BaseModel):
    products: list[ProductResponse]
    total: int


class AdminProductListResponse(BaseModel):
    products: list[ProductResponse]
    total: int
    page: int
    pageSize: int
    totalPages: int
