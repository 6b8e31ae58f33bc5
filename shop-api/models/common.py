"""
Shared API models
"""
import re
from pydantic import BaseModel, Field
from typing import List, Optional

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

def normalize_email(value: str) -> str:
    value = (value or "").strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Please provide a valid email address")
    return value

class SEO(BaseModel):
    """Search engine metadata"""
    title: Optional[str] = Field(None, max_length=70)
    description: Optional[str] = Field(None, max_length=160)
    keywords: List[str] = Field(default_factory=list)

class CategoryRef(BaseModel):
    """Entry in a category's ancestors path"""
    id: str
    name: str
    slug: str

class BrandRef(BaseModel):
    id: str
    name: str
    slug: str
    logo: Optional[str] = None

class Address(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=100)
    address_line1: str = Field(..., min_length=1, max_length=200)
    address_line2: Optional[str] = Field(None, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)

    model_config = {
        "json_schema_extra": {
            "example": {
                "full_name": "Jane Doe",
                "address_line1": "1 Rue de la Paix",
                "city": "Paris",
                "state": "Ile-de-France",
                "postal_code": "75002",
                "country": "France",
                "phone": "+33 1 23 45 67 89"
            }
        }
    }
