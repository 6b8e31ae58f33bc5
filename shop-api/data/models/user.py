"""
User Data Model
"""
import uuid
from datetime import datetime
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

ROLES = ("customer", "admin", "manager")

def default_preferences() -> Dict[str, Any]:
    return {
        "language": "en",
        "currency": "USD",
        "notifications": {"email": True, "marketing": False},
    }

def default_customer_data() -> Dict[str, Any]:
    return {"total_spent": 0.0, "order_count": 0, "last_order_date": None}

@dataclass
class User:
    """User Model"""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    username: str = ""
    email: str = ""
    password_hash: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    is_active: bool = True
    is_verified: bool = False
    role: str = "customer"
    preferences: Dict[str, Any] = field(default_factory=default_preferences)
    addresses: List[Dict[str, Any]] = field(default_factory=list)
    wishlist: List[Dict[str, Any]] = field(default_factory=list)
    customer_data: Dict[str, Any] = field(default_factory=default_customer_data)
    password_reset_token: Optional[str] = None
    password_reset_expires: Optional[datetime] = None
    password_reset_requested_at: Optional[datetime] = None
    last_login: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def full_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.username

    @property
    def wants_email(self) -> bool:
        return bool((self.preferences or {}).get("notifications", {}).get("email", True))

    def find_wishlist_entry(self, product_id: str, variant_id: Optional[str] = None) -> int:
        """Index of the (product, variant) entry, -1 if absent"""
        for index, entry in enumerate(self.wishlist):
            if entry.get("product_id") == product_id and entry.get("variant_id") == variant_id:
                return index
        return -1

    def set_default_address(self, address_id: str) -> bool:
        """Mark one address as default and clear the flag on the rest"""
        if not any(addr.get("id") == address_id for addr in self.addresses):
            return False
        for addr in self.addresses:
            addr["is_default"] = addr.get("id") == address_id
        return True

    def record_order(self, order_total: float, ordered_at: datetime):
        data = {**default_customer_data(), **(self.customer_data or {})}
        data["total_spent"] = round(float(data["total_spent"] or 0) + order_total, 2)
        data["order_count"] = int(data["order_count"] or 0) + 1
        data["last_order_date"] = ordered_at.isoformat()
        self.customer_data = data
