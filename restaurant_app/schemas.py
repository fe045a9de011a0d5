"""
Restaurant data schemas

Stored JSON and API payloads use camelCase keys; every model accepts either
the camelCase alias or the snake_case attribute name.
"""
from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

StockStatus = Literal["in_stock", "low_stock", "out_of_stock"]
PaymentStatus = Literal["paid", "partial", "unpaid"]
OrderStatus = Literal["pending", "preparing", "ready", "delivered", "cancelled"]


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class InventoryItem(CamelModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True, "extra": "allow"}

    id: str
    name: str
    category: str = Field("", description="Free-text category, grouped literally")
    current_stock: float = Field(0, description="Units currently on hand")
    unit: str = ""
    minimum_stock: float = 0
    maximum_stock: float = 0
    unit_price: float = 0
    supplier: str = ""
    last_restocked: Optional[str] = None
    expiry_date: Optional[str] = None
    status: StockStatus = "in_stock"
    description: str = ""
    is_paid: bool = False
    discount_percentage: float = 0
    final_price: Optional[float] = None
    payment_methods: list[str] = Field(default_factory=list)
    qr_code_image: str = ""
    upi_link: str = ""
    supplier_phone: str = ""

    @property
    def value(self) -> float:
        return self.current_stock * self.unit_price


class InventoryItemCreate(CamelModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "name": "Paneer",
                "category": "Dairy",
                "currentStock": 12,
                "unit": "kg",
                "minimumStock": 5,
                "maximumStock": 40,
                "unitPrice": 320,
                "supplier": "Amul Distributors",
            }
        },
    }
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    current_stock: float
    unit: str = Field(..., min_length=1)
    minimum_stock: float
    maximum_stock: float
    unit_price: float
    supplier: str = Field(..., min_length=1)
    last_restocked: Optional[str] = None
    expiry_date: Optional[str] = None
    description: str = ""
    is_paid: bool = False
    discount_percentage: float = 0
    final_price: Optional[float] = None
    payment_methods: list[str] = Field(default_factory=list)
    qr_code_image: str = ""
    upi_link: str = ""
    supplier_phone: str = ""
    updated_by: Optional[str] = None


class InventoryItemUpdate(CamelModel):
    id: str
    name: Optional[str] = None
    category: Optional[str] = None
    current_stock: Optional[float] = None
    unit: Optional[str] = None
    minimum_stock: Optional[float] = None
    maximum_stock: Optional[float] = None
    unit_price: Optional[float] = None
    supplier: Optional[str] = None
    last_restocked: Optional[str] = None
    expiry_date: Optional[str] = None
    description: Optional[str] = None
    is_paid: Optional[bool] = None
    discount_percentage: Optional[float] = None
    final_price: Optional[float] = None
    payment_methods: Optional[list[str]] = None
    qr_code_image: Optional[str] = None
    upi_link: Optional[str] = None
    supplier_phone: Optional[str] = None
    updated_by: Optional[str] = None


class CategoryAggregate(CamelModel):
    category: str
    total_items: int
    total_value: float
    average_value: float
    stock_health: int = Field(..., ge=0, le=100)
    turnover_rate: float
    low_stock_items: int
    critical_alerts: int
    top_item: Optional[str] = None
    unpaid_items: int
    payment_status: PaymentStatus
    performance_score: Optional[int] = None


class SupplierAggregate(CamelModel):
    supplier: str
    orders: int
    value: float
    items: float
    performance: float


class WaiterPerformance(CamelModel):
    name: str
    orders: int
    revenue: float
    avg_order_value: int
    satisfaction: float
    score: int = 0


class DeliveryAddress(CamelModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "allow",
        "coerce_numbers_to_str": True,
    }

    label: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone_number: Optional[str] = None


class LegacyOrder(CamelModel):
    """An order as written by the old ordering screens; only ``id`` and ``timestamp`` are required."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "allow",
        "coerce_numbers_to_str": True,
    }

    id: str
    items: list[Any] = Field(default_factory=list)
    total: float = 0
    status: str = "pending"
    order_type: str = "dine-in"
    table_number: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    timestamp: str
    delivery_address: Optional[DeliveryAddress] = None

    @field_validator("items", "total", "status", "order_type", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class CustomerAddress(CamelModel):
    id: Optional[str] = None
    label: str = "Home"
    street_address: str = Field(..., min_length=1)
    city: str = ""
    state: str = ""
    zip_code: str = ""
    phone_number: Optional[str] = None
    is_default: bool = False


class CustomerAddressUpdate(CamelModel):
    label: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone_number: Optional[str] = None
    is_default: Optional[bool] = None


class CustomerProfileCreate(CamelModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {"uid": "u_123", "email": "asha@example.com", "displayName": "Asha Rao"}
        },
    }
    uid: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    photo_url: Optional[str] = None


class CustomerProfileUpdate(CamelModel):
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    photo_url: Optional[str] = None
    preferences: Optional[dict] = None


class OrderAction(CamelModel):
    action: Literal["add", "update", "cancel"]
    order: Optional[dict] = None
    order_id: Optional[str] = None
    status: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[str] = None


class BlogPostInput(CamelModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True, "extra": "allow"}

    title: str = Field(..., min_length=1)
    content: str = ""
    slug: Optional[str] = None
    excerpt: str = ""
    featured_image: str = ""
    author: str = "Admin"
    category: str = "General"
    tags: list[str] = Field(default_factory=list)
    featured: bool = False
    published: bool = True
    publish_date: Optional[str] = None


class ReviewInput(BaseModel):
    name: str = ""
    rating: float = 0
    comment: str = ""


class EventBookingInput(CamelModel):
    name: str = ""
    phone: str = ""
    email: Optional[EmailStr] = None
    event_type: str = ""
    event_date: str = ""
    event_time: str = ""
    guest_count: int = 0
    special_requests: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class TokenRequest(BaseModel):
    token: str = ""


class MigrationOptions(CamelModel):
    create_backup: bool = True
    resume: bool = False


class MigrationRequest(CamelModel):
    action: str
    options: MigrationOptions = Field(default_factory=MigrationOptions)
