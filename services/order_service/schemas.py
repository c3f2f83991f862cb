from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, field_validator

from .money import round_if_roundable

OrderStatusValue = Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]
PaymentStatusValue = Literal["unpaid", "partial", "paid", "refunded"]


class ValidationErrorDetail(BaseModel):
    field: str
    message: str


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[ValidationErrorDetail] = []

    @classmethod
    def from_errors(cls, errors: List[ValidationErrorDetail]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=errors)


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


# Request shapes are deliberately loose on value ranges: the validators
# report every offending field at once instead of failing on the first.
class OrderItemCreate(BaseModel):
    product_id: Optional[int] = None
    inventory_id: Optional[int] = None
    product_name: Optional[str] = None
    quantity: Optional[Union[int, float]] = None
    unit_price: Optional[Decimal] = None

    @field_validator("unit_price")
    @classmethod
    def round_unit_price(cls, value):
        return round_if_roundable(value)


class OrderCreate(BaseModel):
    customer_id: Optional[int] = None
    items: List[OrderItemCreate] = []
    notes: Optional[str] = None
    shipping_address: Optional[Address] = None
    billing_address: Optional[Address] = None
    estimated_delivery_date: Optional[date] = None
    payment_method: Optional[str] = None
    discount_amount: Optional[Decimal] = None
    idempotency_key: Optional[str] = None

    @field_validator("discount_amount")
    @classmethod
    def round_discount(cls, value):
        return round_if_roundable(value)

    class Config:
        extra = "forbid"


class OrderUpdate(BaseModel):
    """Closed set of fields editable outside the status workflow."""
    payment_status: Optional[PaymentStatusValue] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    shipping_address: Optional[Address] = None
    billing_address: Optional[Address] = None
    estimated_delivery_date: Optional[date] = None
    actual_delivery_date: Optional[date] = None
    discount_amount: Optional[Decimal] = None

    @field_validator("discount_amount")
    @classmethod
    def round_discount(cls, value):
        return round_if_roundable(value)

    class Config:
        extra = "forbid"


class StatusUpdate(BaseModel):
    status: OrderStatusValue
    notes: Optional[str] = None

    class Config:
        extra = "forbid"


class OrderFilters(BaseModel):
    status: Optional[List[OrderStatusValue]] = None
    payment_status: Optional[List[PaymentStatusValue]] = None
    customer_id: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: Optional[str] = None
    limit: int = 50
    offset: int = 0


class OrderTotals(BaseModel):
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal


class InventoryValidationError(BaseModel):
    product_id: Optional[int] = None
    inventory_id: Optional[int] = None
    product_name: str
    requested_quantity: int
    available_quantity: int
    message: str


class InventoryValidationWarning(BaseModel):
    product_id: Optional[int] = None
    inventory_id: Optional[int] = None
    product_name: str
    message: str


class InventoryValidation(BaseModel):
    is_valid: bool
    errors: List[InventoryValidationError] = []
    warnings: List[InventoryValidationWarning] = []


class OrderItemResponse(BaseModel):
    id: int
    product_id: Optional[int]
    inventory_id: Optional[int]
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    business_id: str
    customer_id: Optional[int]
    order_number: str
    status: OrderStatusValue
    payment_status: PaymentStatusValue
    payment_method: Optional[str]
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    notes: Optional[str]
    shipping_address: Optional[Address]
    billing_address: Optional[Address]
    estimated_delivery_date: Optional[date]
    actual_delivery_date: Optional[date]
    created_by: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    items: List[OrderItemResponse] = []
    # Denormalized for display; filled from the customer lookup when known
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    warnings: List[InventoryValidationWarning] = []

    class Config:
        from_attributes = True


class StatusHistoryResponse(BaseModel):
    id: int
    order_id: int
    status: OrderStatusValue
    changed_by: Optional[str]
    notes: Optional[str]
    changed_at: Optional[datetime]

    class Config:
        from_attributes = True


class TotalsRequest(BaseModel):
    items: List[OrderItemCreate]
    discount_amount: Optional[Decimal] = None


class InventoryCheckRequest(BaseModel):
    items: List[OrderItemCreate]
