"""
Category models
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from models.common import SEO, CategoryRef

class CategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = Field(None, max_length=2000)
    parent: Optional[str] = Field(None, description="Parent category ID")
    image: Optional[str] = None
    seo: SEO = Field(default_factory=SEO)
    is_active: bool = True
    display_order: int = 0

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Evening Gowns",
                "parent": "0b8f3c1e-2a44-4e55-9a3e-7d3f1c0a9b21",
                "description": "Floor length gowns for formal occasions",
                "display_order": 1
            }
        }
    }

class CategoryUpdateRequest(BaseModel):
    """Partial update; send ``parent: null`` to move a category to the root"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = Field(None, max_length=2000)
    parent: Optional[str] = None
    image: Optional[str] = None
    seo: Optional[SEO] = None
    is_active: Optional[bool] = None
    display_order: Optional[int] = None

class Category(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    parent: Optional[CategoryRef] = None
    ancestors: List[CategoryRef] = Field(default_factory=list)
    image: Optional[str] = None
    seo: SEO = Field(default_factory=SEO)
    is_active: bool = True
    display_order: int = 0
    products_count: int = 0
    created_at: datetime
    updated_at: datetime
