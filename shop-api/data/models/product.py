"""
Product Data Model
"""
import uuid
from datetime import datetime
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

@dataclass
class Product:
    """Product Model"""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    slug: str = ""
    description: str = ""
    short_description: Optional[str] = None
    brand_id: Optional[str] = None
    category_id: Optional[str] = None
    images: List[Dict[str, Any]] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)
    price: float = 0.0
    compare_at_price: Optional[float] = None
    variants: List[Dict[str, Any]] = field(default_factory=list)
    seo: Dict[str, Any] = field(default_factory=dict)
    status: str = "draft"
    is_published: bool = False
    is_featured: bool = False
    has_variants: bool = False
    inventory_quantity: int = 0
    inventory_tracking: bool = True
    reviews: List[Dict[str, Any]] = field(default_factory=list)
    average_rating: float = 0.0
    review_count: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    # Populated by joins, not stored on the row
    category: Optional[Dict[str, Any]] = None
    brand: Optional[Dict[str, Any]] = None

    @property
    def in_stock(self) -> bool:
        if self.has_variants and self.variants:
            return any(int(v.get("inventory_quantity") or 0) > 0 for v in self.variants)
        return self.inventory_quantity > 0

    @property
    def is_visible(self) -> bool:
        """Visible on the storefront"""
        return self.is_published and self.status == "active"

    def find_variant(self, variant_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not variant_id:
            return None
        return next((v for v in self.variants if v.get("id") == variant_id), None)

    def default_image_url(self) -> Optional[str]:
        if not self.images:
            return None
        default = next((img for img in self.images if img.get("is_default")), self.images[0])
        return default.get("url")

    def normalize(self):
        """Variant ids and a single default image"""
        for variant in self.variants:
            if not variant.get("id"):
                variant["id"] = str(uuid.uuid4())
        if self.images and not any(img.get("is_default") for img in self.images):
            self.images[0]["is_default"] = True

    def add_review(self, review: Dict[str, Any]):
        self.reviews.append(review)
        self.recalculate_rating()

    def recalculate_rating(self):
        ratings = [int(r.get("rating") or 0) for r in self.reviews]
        self.review_count = len(ratings)
        self.average_rating = round(sum(ratings) / len(ratings), 2) if ratings else 0.0
