"""
Order Data Model
"""
import uuid
from datetime import datetime
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

from utils.time_utils import now

# Orders in these states do not count towards sales figures
NON_REVENUE_STATUSES = ("cancelled", "refunded")

STATE_MACHINE: Dict[str, List[str]] = {
    "pending": ["processing", "payment_pending", "cancelled", "on_hold"],
    "payment_pending": ["pending", "processing", "paid", "cancelled", "on_hold"],
    "processing": ["shipped", "on_hold", "cancelled"],
    "paid": ["processing", "on_hold", "cancelled"],
    "shipped": ["delivered", "on_hold"],
    "delivered": [],
    "cancelled": [],
    "refunded": [],
    "partially_refunded": ["refunded"],
    "on_hold": ["pending", "processing", "cancelled"],
    "returned": ["refunded", "partially_refunded"],
}

def can_transition(current: str, new_status: str) -> bool:
    if current == new_status:
        return True
    return new_status in STATE_MACHINE.get(current, [])

def calculate_totals(items: List[Dict[str, Any]], shipping_cost: float = 0.0,
                     tax_amount: float = 0.0, discount_total: float = 0.0) -> Dict[str, float]:
    subtotal = round(sum(float(item["price"]) * int(item["quantity"]) for item in items), 2)
    total = round(subtotal + float(shipping_cost or 0) + float(tax_amount or 0) - float(discount_total or 0), 2)
    return {
        "subtotal": subtotal,
        "shipping_cost": round(float(shipping_cost or 0), 2),
        "tax_amount": round(float(tax_amount or 0), 2),
        "discount_total": round(float(discount_total or 0), 2),
        "total_amount": total,
    }

@dataclass
class Order:
    """Order Model"""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    order_number: str = ""
    user_id: Optional[str] = None
    user_snapshot: Dict[str, Any] = field(default_factory=dict)
    items: List[Dict[str, Any]] = field(default_factory=list)
    subtotal: float = 0.0
    shipping_cost: float = 0.0
    tax_amount: float = 0.0
    discount_total: float = 0.0
    total_amount: float = 0.0
    currency: str = "USD"
    status: str = "pending"
    status_history: List[Dict[str, Any]] = field(default_factory=list)
    payment_status: str = "pending"
    fulfillment_status: str = "unfulfilled"
    shipping: Dict[str, Any] = field(default_factory=dict)
    billing: Dict[str, Any] = field(default_factory=dict)
    coupon_code: Optional[str] = None
    customer_note: Optional[str] = None
    internal_notes: List[Dict[str, Any]] = field(default_factory=list)
    ip_address: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def can_transition_to(self, new_status: str) -> bool:
        return can_transition(self.status, new_status)

    def valid_next_statuses(self) -> List[str]:
        return list(STATE_MACHINE.get(self.status, []))

    def record_status(self, status: str, comment: Optional[str] = None, updated_by: Optional[str] = None):
        """Set the status and append to the history"""
        self.status = status
        self.status_history.append({
            "status": status,
            "timestamp": now().isoformat(),
            "comment": comment,
            "updated_by": updated_by,
        })

    def apply_totals(self, totals: Dict[str, float]):
        self.subtotal = totals["subtotal"]
        self.shipping_cost = totals["shipping_cost"]
        self.tax_amount = totals["tax_amount"]
        self.discount_total = totals["discount_total"]
        self.total_amount = totals["total_amount"]

def build_order_item(product, variant: Optional[Dict[str, Any]], quantity: int) -> Dict[str, Any]:
    """Line item with a snapshot of the product as it was when ordered"""
    price = float(variant["price"]) if variant and variant.get("price") is not None else float(product.price)
    return {
        "product_id": product.id,
        "variant_id": variant.get("id") if variant else None,
        "product_snapshot": {
            "name": product.name,
            "description": product.short_description or product.description,
            "sku": variant.get("sku") if variant else None,
            "image_url": product.default_image_url(),
        },
        "variant_attributes": dict(variant.get("attributes") or {}) if variant else {},
        "quantity": quantity,
        "price": price,
        "discount": 0.0,
        "item_total": round(price * quantity, 2),
    }
