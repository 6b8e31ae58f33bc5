"""
User and authentication models
"""
import re
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum

from models.common import Address, normalize_email

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]+$")

class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    MANAGER = "manager"

def _validate_username(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not USERNAME_PATTERN.match(v):
        raise ValueError("Username can only contain letters, numbers, dots, underscores and hyphens")
    return v

class RegisterRequest(BaseModel):
    """Self sign-up"""
    username: str = Field(..., min_length=3, max_length=50)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return normalize_email(v)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        return _validate_username(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "username": "jdoe",
                "email": "jane@example.com",
                "password": "s3cret!",
                "first_name": "Jane",
                "last_name": "Doe"
            }
        }
    }

class AdminCreateUserRequest(RegisterRequest):
    role: UserRole = UserRole.CUSTOMER
    is_active: bool = True
    is_verified: bool = False

class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return normalize_email(v)

class NotificationPreferences(BaseModel):
    email: bool = True
    marketing: bool = False

class Preferences(BaseModel):
    language: str = "en"
    currency: str = "USD"
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)

class UserUpdateRequest(BaseModel):
    """Partial profile update; only provided fields are changed"""
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    avatar: Optional[str] = None
    role: Optional[UserRole] = None
    preferences: Optional[Preferences] = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return normalize_email(v) if v is not None else v

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        return _validate_username(v)

class PasswordUpdateRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)

class RoleUpdateRequest(BaseModel):
    role: str

class ActiveUpdateRequest(BaseModel):
    is_active: Optional[bool] = None

class ForgotPasswordRequest(BaseModel):
    email: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return normalize_email(v)

class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6, max_length=128)

class AddressRequest(Address):
    is_default: bool = False

class WishlistRequest(BaseModel):
    variant_id: Optional[str] = None

class UserAddress(Address):
    id: str
    is_default: bool = False

class WishlistEntry(BaseModel):
    product_id: str
    variant_id: Optional[str] = None
    added_at: Optional[datetime] = None

class CustomerData(BaseModel):
    total_spent: float = 0.0
    order_count: int = 0
    last_order_date: Optional[datetime] = None

class User(BaseModel):
    """User as exposed by the API (no password or reset token)"""
    id: str
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: str
    phone: Optional[str] = None
    avatar: Optional[str] = None
    is_active: bool = True
    is_verified: bool = False
    role: UserRole = UserRole.CUSTOMER
    is_admin: bool = False
    preferences: Dict[str, Any] = Field(default_factory=dict)
    addresses: List[UserAddress] = Field(default_factory=list)
    wishlist: List[WishlistEntry] = Field(default_factory=list)
    customer_data: CustomerData = Field(default_factory=CustomerData)
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "use_enum_values": True,
        "from_attributes": True,
    }

class AuthResult(BaseModel):
    user: User
    token: str
