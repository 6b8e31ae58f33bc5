"""
Brand models
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from models.common import SEO

class BrandCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = Field(None, max_length=2000)
    logo: Optional[str] = None
    website: Optional[str] = None
    is_active: bool = True
    seo: SEO = Field(default_factory=SEO)

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Maison Lumière",
                "description": "Parisian haute couture since 1924",
                "logo": "https://cdn.example.com/brands/lumiere.png",
                "website": "https://lumiere.example.com"
            }
        }
    }

class BrandUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = Field(None, max_length=2000)
    logo: Optional[str] = None
    website: Optional[str] = None
    is_active: Optional[bool] = None
    seo: Optional[SEO] = None

class Brand(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    is_active: bool = True
    seo: SEO = Field(default_factory=SEO)
    products_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
