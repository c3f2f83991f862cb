"""
Request validators for the order core.

Each validator collects every field-addressable problem instead of stopping
at the first one, so a UI can highlight all offending fields at once. None of
them touch storage.
"""
import re
from datetime import date
from decimal import Decimal
from typing import List, Optional

from .schemas import (
    Address,
    OrderCreate,
    OrderItemCreate,
    OrderUpdate,
    ValidationErrorDetail,
    ValidationResult,
)
from .totals import calculate_subtotal

MAX_PRODUCT_NAME_LENGTH = 255
MAX_ITEM_QUANTITY = 10_000
MAX_UNIT_PRICE = Decimal("999999.99")
MAX_ORDER_VALUE = Decimal("1000000")

ADDRESS_FIELD_LIMITS = {
    "street": ("Street address", 255),
    "city": ("City", 100),
    "state": ("State", 100),
    "postal_code": ("Postal code", 20),
    "country": ("Country", 100),
}
POSTAL_CODE_PATTERN = re.compile(r"[A-Za-z0-9\s-]+")

ORDER_NUMBER_PATTERN = re.compile(r"ORD-[A-Z0-9]+-[A-Z0-9]+")
MAX_ORDER_NUMBER_LENGTH = 50

PAYMENT_METHODS = ("cash", "credit_card", "debit_card", "bank_transfer", "paypal", "stripe", "other")


def _prefixed(prefix: str, field: str) -> str:
    return f"{prefix}.{field}" if prefix else field


def validate_order_item(item: OrderItemCreate, field_prefix: str = "") -> ValidationResult:
    errors: List[ValidationErrorDetail] = []

    def error(field: str, message: str):
        errors.append(ValidationErrorDetail(field=_prefixed(field_prefix, field), message=message))

    if not item.product_name or not item.product_name.strip():
        error("product_name", "Product name is required")
    elif len(item.product_name) > MAX_PRODUCT_NAME_LENGTH:
        error("product_name", f"Product name cannot exceed {MAX_PRODUCT_NAME_LENGTH} characters")

    quantity = item.quantity
    if quantity is None or quantity <= 0:
        error("quantity", "Quantity must be greater than 0")
    else:
        if isinstance(quantity, float) and not quantity.is_integer():
            error("quantity", "Quantity must be a whole number")
        if quantity > MAX_ITEM_QUANTITY:
            error("quantity", f"Quantity cannot exceed {MAX_ITEM_QUANTITY:,}")

    if item.unit_price is None or item.unit_price < 0:
        error("unit_price", "Unit price must be 0 or greater")
    elif item.unit_price > MAX_UNIT_PRICE:
        error("unit_price", f"Unit price cannot exceed {MAX_UNIT_PRICE:,}")

    if item.product_id is not None and item.inventory_id is not None:
        error("product_id", "Cannot specify both product_id and inventory_id")

    return ValidationResult.from_errors(errors)


def validate_address(address: Address, field_prefix: str = "") -> ValidationResult:
    errors: List[ValidationErrorDetail] = []

    for field, (label, limit) in ADDRESS_FIELD_LIMITS.items():
        value = getattr(address, field)
        if value and len(value) > limit:
            errors.append(ValidationErrorDetail(
                field=_prefixed(field_prefix, field),
                message=f"{label} cannot exceed {limit} characters",
            ))

    if address.postal_code and not POSTAL_CODE_PATTERN.fullmatch(address.postal_code):
        errors.append(ValidationErrorDetail(
            field=_prefixed(field_prefix, "postal_code"),
            message="Postal code contains invalid characters",
        ))

    return ValidationResult.from_errors(errors)


def validate_payment_method(payment_method: Optional[str]) -> ValidationResult:
    errors: List[ValidationErrorDetail] = []
    if payment_method and payment_method.lower() not in PAYMENT_METHODS:
        errors.append(ValidationErrorDetail(
            field="payment_method",
            message=f"Invalid payment method. Valid options: {', '.join(PAYMENT_METHODS)}",
        ))
    return ValidationResult.from_errors(errors)


def validate_order_number(order_number: Optional[str]) -> ValidationResult:
    errors: List[ValidationErrorDetail] = []

    if not order_number or not order_number.strip():
        errors.append(ValidationErrorDetail(field="order_number", message="Order number is required"))
        return ValidationResult.from_errors(errors)

    if len(order_number) > MAX_ORDER_NUMBER_LENGTH:
        errors.append(ValidationErrorDetail(
            field="order_number",
            message=f"Order number cannot exceed {MAX_ORDER_NUMBER_LENGTH} characters",
        ))
    if not ORDER_NUMBER_PATTERN.fullmatch(order_number):
        errors.append(ValidationErrorDetail(
            field="order_number",
            message="Order number must follow format: ORD-XXXXXXX-XXXXX",
        ))
    return ValidationResult.from_errors(errors)


def _validate_addresses(request) -> List[ValidationErrorDetail]:
    errors: List[ValidationErrorDetail] = []
    if request.shipping_address is not None:
        errors.extend(validate_address(request.shipping_address, "shipping_address").errors)
    if request.billing_address is not None:
        errors.extend(validate_address(request.billing_address, "billing_address").errors)
    return errors


def validate_create_order_request(request: OrderCreate, today: date) -> ValidationResult:
    """Shape rules for a create-order request.

    ``today`` is the caller's business date; a delivery estimate equal to it
    is accepted, anything strictly earlier is not.
    """
    errors: List[ValidationErrorDetail] = []

    if not request.items:
        errors.append(ValidationErrorDetail(field="items", message="Order must have at least one item"))
    else:
        for index, item in enumerate(request.items):
            errors.extend(validate_order_item(item, f"items[{index}]").errors)

    if request.discount_amount is not None and request.discount_amount < 0:
        errors.append(ValidationErrorDetail(field="discount_amount", message="Discount amount cannot be negative"))

    errors.extend(_validate_addresses(request))

    if request.estimated_delivery_date is not None and request.estimated_delivery_date < today:
        errors.append(ValidationErrorDetail(
            field="estimated_delivery_date",
            message="Estimated delivery date cannot be in the past",
        ))

    return ValidationResult.from_errors(errors)


def validate_order(request: OrderCreate, today: date) -> ValidationResult:
    """Full acceptance check: shape rules plus the business-rule layer.

    Order value is only computed once every line passed its own checks.
    """
    shape = validate_create_order_request(request, today)
    errors = list(shape.errors)
    errors.extend(validate_payment_method(request.payment_method).errors)
    if not shape.is_valid:
        return ValidationResult.from_errors(errors)

    order_value = calculate_subtotal(request.items)
    if order_value <= 0:
        errors.append(ValidationErrorDetail(field="items", message="Order total must be greater than 0"))
    if order_value > MAX_ORDER_VALUE:
        errors.append(ValidationErrorDetail(field="items", message=f"Order total cannot exceed {MAX_ORDER_VALUE:,}"))

    if request.discount_amount and request.discount_amount > order_value:
        errors.append(ValidationErrorDetail(
            field="discount_amount",
            message="Discount amount cannot exceed order subtotal",
        ))

    return ValidationResult.from_errors(errors)


def validate_update_order_request(
    update: OrderUpdate,
    current_estimated_delivery_date: Optional[date] = None,
) -> ValidationResult:
    errors: List[ValidationErrorDetail] = []

    if update.discount_amount is not None and update.discount_amount < 0:
        errors.append(ValidationErrorDetail(field="discount_amount", message="Discount amount cannot be negative"))

    errors.extend(validate_payment_method(update.payment_method).errors)
    errors.extend(_validate_addresses(update))

    if "estimated_delivery_date" in update.model_fields_set:
        estimated = update.estimated_delivery_date
    else:
        estimated = current_estimated_delivery_date
    if update.actual_delivery_date is not None and estimated is not None and update.actual_delivery_date < estimated:
        errors.append(ValidationErrorDetail(
            field="actual_delivery_date",
            message="Actual delivery date cannot be before estimated delivery date",
        ))

    return ValidationResult.from_errors(errors)
