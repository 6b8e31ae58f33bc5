"""
Order models
"""
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum

from models.common import Address

class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAYMENT_PENDING = "payment_pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"
    ON_HOLD = "on_hold"
    RETURNED = "returned"

class SalesPeriod(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"

class OrderItemRequest(BaseModel):
    product_id: str
    variant_id: Optional[str] = None
    quantity: int = Field(..., ge=1, le=1000)

class ShippingRequest(BaseModel):
    method: str = Field("standard", max_length=50)
    cost: float = Field(0.0, ge=0)
    address: Address

class BillingRequest(BaseModel):
    payment_method: str = Field(..., max_length=50)
    last_four_digits: Optional[str] = Field(None, min_length=4, max_length=4)
    card_type: Optional[str] = Field(None, max_length=30)
    address: Optional[Address] = None

    @field_validator('last_four_digits')
    @classmethod
    def validate_last_four(cls, v):
        if v is not None and not v.isdigit():
            raise ValueError('last_four_digits must be 4 digits')
        return v

class OrderCreateRequest(BaseModel):
    products: List[OrderItemRequest] = Field(default_factory=list)
    shipping: ShippingRequest
    billing: BillingRequest
    customer_note: Optional[str] = Field(None, max_length=1000)
    tax_amount: float = Field(0.0, ge=0)
    discount_total: float = Field(0.0, ge=0)
    coupon_code: Optional[str] = Field(None, max_length=50)

    model_config = {
        "json_schema_extra": {
            "example": {
                "products": [
                    {"product_id": "a1c9e7d2-5b6f-4f0e-8d3c-1b2a3c4d5e6f",
                     "variant_id": "7c1f0e2d-3b4a-4c5d-9e8f-0a1b2c3d4e5f", "quantity": 1}
                ],
                "shipping": {
                    "method": "express",
                    "cost": 25.0,
                    "address": {"full_name": "Jane Doe", "address_line1": "1 Rue de la Paix",
                                "city": "Paris", "state": "IDF", "postal_code": "75002", "country": "France"}
                },
                "billing": {"payment_method": "credit_card", "last_four_digits": "4242", "card_type": "visa"},
                "tax_amount": 196.0
            }
        }
    }

class StatusUpdateRequest(BaseModel):
    status: OrderStatus
    comment: Optional[str] = Field(None, max_length=500)

    model_config = {"use_enum_values": True}

class TrackingRequest(BaseModel):
    carrier: str = Field(..., min_length=1, max_length=100)
    tracking_number: str = Field(..., min_length=1, max_length=100)
    estimated_delivery: Optional[datetime] = None

class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)

class NoteRequest(BaseModel):
    note: str = Field(..., min_length=1, max_length=2000)

class ProductSnapshot(BaseModel):
    name: str
    description: Optional[str] = None
    sku: Optional[str] = None
    image_url: Optional[str] = None

class OrderItem(BaseModel):
    product_id: str
    variant_id: Optional[str] = None
    product_snapshot: ProductSnapshot
    variant_attributes: Dict[str, Any] = Field(default_factory=dict)
    quantity: int
    price: float
    discount: float = 0.0
    item_total: float

class StatusHistoryEntry(BaseModel):
    status: str
    timestamp: datetime
    comment: Optional[str] = None
    updated_by: Optional[str] = None

class InternalNote(BaseModel):
    note: str
    created_by: Optional[str] = None
    created_at: datetime

class Order(BaseModel):
    id: str
    order_number: str
    user_id: Optional[str] = None
    user_snapshot: Dict[str, Any] = Field(default_factory=dict)
    items: List[OrderItem] = Field(default_factory=list)
    subtotal: float
    shipping_cost: float
    tax_amount: float
    discount_total: float
    total_amount: float
    currency: str = "USD"
    status: str
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)
    payment_status: str
    fulfillment_status: str
    shipping: Dict[str, Any] = Field(default_factory=dict)
    billing: Dict[str, Any] = Field(default_factory=dict)
    coupon_code: Optional[str] = None
    customer_note: Optional[str] = None
    internal_notes: List[InternalNote] = Field(default_factory=list)
    valid_next_statuses: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

class SalesStat(BaseModel):
    date: str
    total_sales: float
    order_count: int

class OrderDashboard(BaseModel):
    total_sales: float
    total_orders: int
    status_counts: Dict[str, int] = Field(default_factory=dict)
    payment_status_counts: Dict[str, int] = Field(default_factory=dict)
    recent_orders: List[Order] = Field(default_factory=list)
