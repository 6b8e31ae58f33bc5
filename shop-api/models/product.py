"""
Product models
"""
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum

from models.common import SEO, BrandRef, CategoryRef

class ProductStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"

class WeightUnit(str, Enum):
    G = "g"
    KG = "kg"
    LB = "lb"
    OZ = "oz"

class ProductImage(BaseModel):
    url: str = Field(..., min_length=1)
    alt: Optional[str] = None
    is_default: bool = False

class ProductVariant(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=200)
    sku: str = Field(..., min_length=1, max_length=100)
    attributes: Dict[str, Any] = Field(default_factory=dict)
    price: float = Field(..., ge=0)
    compare_at_price: Optional[float] = Field(None, ge=0)
    inventory_quantity: int = Field(0, ge=0)
    weight: Optional[float] = Field(None, ge=0)
    weight_unit: WeightUnit = WeightUnit.G

    model_config = {"use_enum_values": True}

class Review(BaseModel):
    id: str
    user_id: str
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = None
    content: Optional[str] = None
    is_verified_purchase: bool = False
    created_at: datetime

class ProductCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=220)
    description: str = Field(..., min_length=1)
    short_description: Optional[str] = Field(None, max_length=500)
    brand: Optional[str] = Field(None, description="Brand ID")
    category: str = Field(..., description="Category ID")
    images: List[ProductImage] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    attributes: Dict[str, Any] = Field(default_factory=dict)
    price: float = Field(..., ge=0)
    compare_at_price: Optional[float] = Field(None, ge=0)
    variants: List[ProductVariant] = Field(default_factory=list)
    seo: SEO = Field(default_factory=SEO)
    status: ProductStatus = ProductStatus.DRAFT
    is_published: bool = False
    is_featured: bool = False
    has_variants: Optional[bool] = None
    inventory_quantity: int = Field(0, ge=0)
    inventory_tracking: bool = True

    @field_validator('tags')
    @classmethod
    def validate_tags(cls, v):
        return [tag.strip().lower() for tag in v if tag and tag.strip()]

    model_config = {
        "use_enum_values": True,
        "json_schema_extra": {
            "example": {
                "name": "Silk Evening Gown",
                "description": "Hand finished silk gown with a cathedral train",
                "category": "0b8f3c1e-2a44-4e55-9a3e-7d3f1c0a9b21",
                "brand": "4f1d2b9a-8c77-4c1e-b0a3-2e6d9f5c7a10",
                "price": 2450.0,
                "images": [{"url": "https://cdn.example.com/p/gown.jpg", "alt": "Front"}],
                "variants": [
                    {"name": "Ivory / S", "sku": "GOWN-IV-S", "price": 2450.0,
                     "attributes": {"color": "ivory", "size": "S"}, "inventory_quantity": 3}
                ],
                "status": "active",
                "is_published": True
            }
        }
    }

class ProductUpdateRequest(BaseModel):
    """Partial update; only provided fields are changed"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=220)
    description: Optional[str] = Field(None, min_length=1)
    short_description: Optional[str] = Field(None, max_length=500)
    brand: Optional[str] = None
    category: Optional[str] = None
    images: Optional[List[ProductImage]] = None
    tags: Optional[List[str]] = None
    attributes: Optional[Dict[str, Any]] = None
    price: Optional[float] = Field(None, ge=0)
    compare_at_price: Optional[float] = Field(None, ge=0)
    variants: Optional[List[ProductVariant]] = None
    seo: Optional[SEO] = None
    status: Optional[ProductStatus] = None
    is_published: Optional[bool] = None
    is_featured: Optional[bool] = None
    has_variants: Optional[bool] = None
    inventory_quantity: Optional[int] = Field(None, ge=0)
    inventory_tracking: Optional[bool] = None

    model_config = {"use_enum_values": True}

class ReviewCreateRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = Field(None, max_length=5000)

class InventoryUpdateRequest(BaseModel):
    quantity: int
    variant_id: Optional[str] = None

class FeaturedUpdateRequest(BaseModel):
    is_featured: Optional[bool] = None

class PublishedUpdateRequest(BaseModel):
    is_published: Optional[bool] = None

class CategorySummary(CategoryRef):
    ancestors: List[CategoryRef] = Field(default_factory=list)

class ProductListItem(BaseModel):
    """Fields returned by product listings"""
    id: str
    name: str
    slug: str
    price: float
    compare_at_price: Optional[float] = None
    images: List[ProductImage] = Field(default_factory=list)
    category: Optional[CategoryRef] = None
    brand: Optional[BrandRef] = None
    average_rating: float = 0.0
    review_count: int = 0
    status: str
    has_variants: bool = False
    inventory_quantity: int = 0
    in_stock: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}

class AdminProductListItem(ProductListItem):
    short_description: Optional[str] = None
    is_published: bool = False
    is_featured: bool = False
    updated_at: datetime

class Product(BaseModel):
    """Full product detail"""
    id: str
    name: str
    slug: str
    description: str
    short_description: Optional[str] = None
    brand: Optional[BrandRef] = None
    category: Optional[CategorySummary] = None
    images: List[ProductImage] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    attributes: Dict[str, Any] = Field(default_factory=dict)
    price: float
    compare_at_price: Optional[float] = None
    variants: List[ProductVariant] = Field(default_factory=list)
    seo: SEO = Field(default_factory=SEO)
    status: str
    is_published: bool = False
    is_featured: bool = False
    has_variants: bool = False
    inventory_quantity: int = 0
    inventory_tracking: bool = True
    in_stock: bool = False
    reviews: List[Review] = Field(default_factory=list)
    average_rating: float = 0.0
    review_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

class ReviewResult(BaseModel):
    id: str
    average_rating: float
    review_count: int

class ProductPagination(BaseModel):
    total_count: int
    total_pages: Optional[int] = None
    current_page: Optional[int] = None
    limit: int
    has_next_page: bool
    has_prev_page: bool
    next_cursor: Optional[str] = None
    prev_cursor: Optional[str] = None

class FacetCount(BaseModel):
    id: str
    name: str
    slug: str
    count: int

class PriceRange(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None

class AvailableFilters(BaseModel):
    categories: List[FacetCount] = Field(default_factory=list)
    brands: List[FacetCount] = Field(default_factory=list)
    price_range: PriceRange = Field(default_factory=PriceRange)
    attributes: Dict[str, List[str]] = Field(default_factory=dict)
