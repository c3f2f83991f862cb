"""Validator rules for line items, addresses and whole create/update requests."""
from datetime import date, timedelta
from decimal import Decimal

import pytest

from services.order_service.schemas import Address, OrderCreate, OrderItemCreate, OrderUpdate
from services.order_service.validators import (
    validate_address,
    validate_create_order_request,
    validate_order,
    validate_order_item,
    validate_order_number,
    validate_payment_method,
    validate_update_order_request,
)

TODAY = date(2026, 1, 15)


def item(**overrides):
    data = {"product_name": "Widget", "quantity": 2, "unit_price": Decimal("50.00")}
    data.update(overrides)
    return OrderItemCreate(**data)


def fields(result):
    return [e.field for e in result.errors]


class TestOrderItemValidation:

    def test_valid_item(self):
        result = validate_order_item(item())
        assert result.is_valid
        assert result.errors == []

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_product_name_required(self, name):
        result = validate_order_item(item(product_name=name))
        assert fields(result) == ["product_name"]
        assert result.errors[0].message == "Product name is required"

    def test_product_name_length(self):
        assert validate_order_item(item(product_name="x" * 255)).is_valid
        result = validate_order_item(item(product_name="x" * 256))
        assert fields(result) == ["product_name"]

    @pytest.mark.parametrize("quantity", [None, 0, -3])
    def test_quantity_must_be_positive(self, quantity):
        result = validate_order_item(item(quantity=quantity))
        assert fields(result) == ["quantity"]
        assert result.errors[0].message == "Quantity must be greater than 0"

    def test_quantity_must_be_whole(self):
        result = validate_order_item(item(quantity=2.5))
        assert fields(result) == ["quantity"]
        assert result.errors[0].message == "Quantity must be a whole number"

    def test_quantity_upper_bound(self):
        assert validate_order_item(item(quantity=10_000)).is_valid
        result = validate_order_item(item(quantity=10_001))
        assert result.errors[0].message == "Quantity cannot exceed 10,000"

    def test_unit_price_bounds(self):
        assert validate_order_item(item(unit_price=Decimal("0"))).is_valid
        assert validate_order_item(item(unit_price=Decimal("999999.99"))).is_valid
        assert fields(validate_order_item(item(unit_price=Decimal("-0.01")))) == ["unit_price"]
        assert fields(validate_order_item(item(unit_price=Decimal("1000000")))) == ["unit_price"]
        assert fields(validate_order_item(item(unit_price=None))) == ["unit_price"]

    def test_product_and_inventory_are_exclusive(self):
        assert validate_order_item(item(product_id=1)).is_valid
        assert validate_order_item(item(inventory_id=1)).is_valid
        result = validate_order_item(item(product_id=1, inventory_id=2))
        assert fields(result) == ["product_id"]

    def test_field_prefix_and_all_errors_reported(self):
        result = validate_order_item(item(product_name="", quantity=0, unit_price=None), "items[3]")
        assert fields(result) == ["items[3].product_name", "items[3].quantity", "items[3].unit_price"]


class TestAddressValidation:

    def test_empty_address_is_valid(self):
        assert validate_address(Address()).is_valid

    def test_field_lengths(self):
        address = Address(
            street="s" * 256,
            city="c" * 101,
            state="t" * 101,
            postal_code="1" * 21,
            country="k" * 101,
        )
        result = validate_address(address, "shipping_address")
        assert fields(result) == [
            "shipping_address.street",
            "shipping_address.city",
            "shipping_address.state",
            "shipping_address.postal_code",
            "shipping_address.country",
        ]

    @pytest.mark.parametrize("postal_code", ["94107", "SW1A 1AA", "12345-6789"])
    def test_postal_code_accepted(self, postal_code):
        assert validate_address(Address(postal_code=postal_code)).is_valid

    @pytest.mark.parametrize("postal_code", ["941#07", "A1B_2C3", "12.34"])
    def test_postal_code_rejected(self, postal_code):
        result = validate_address(Address(postal_code=postal_code))
        assert result.errors[0].message == "Postal code contains invalid characters"


class TestCreateOrderValidation:

    def test_items_required(self):
        result = validate_create_order_request(OrderCreate(items=[]), TODAY)
        assert not result.is_valid
        assert fields(result) == ["items"]

    def test_item_errors_are_indexed(self):
        request = OrderCreate(items=[item(), item(quantity=0)])
        result = validate_create_order_request(request, TODAY)
        assert fields(result) == ["items[1].quantity"]

    def test_negative_discount(self):
        request = OrderCreate(items=[item()], discount_amount=Decimal("-1"))
        assert fields(validate_create_order_request(request, TODAY)) == ["discount_amount"]

    def test_delivery_date_today_is_allowed(self):
        request = OrderCreate(items=[item()], estimated_delivery_date=TODAY)
        assert validate_create_order_request(request, TODAY).is_valid

    def test_delivery_date_in_past_rejected(self):
        request = OrderCreate(items=[item()], estimated_delivery_date=TODAY - timedelta(days=1))
        assert fields(validate_create_order_request(request, TODAY)) == ["estimated_delivery_date"]

    def test_billing_address_validated(self):
        request = OrderCreate(items=[item()], billing_address=Address(postal_code="bad!"))
        assert fields(validate_create_order_request(request, TODAY)) == ["billing_address.postal_code"]


class TestBusinessRules:

    def test_zero_value_order_rejected(self):
        request = OrderCreate(items=[item(unit_price=Decimal("0"))])
        result = validate_order(request, TODAY)
        assert result.errors[0].field == "items"
        assert "greater than 0" in result.errors[0].message

    def test_order_value_ceiling(self):
        request = OrderCreate(items=[item(quantity=2, unit_price=Decimal("500000.01"))])
        result = validate_order(request, TODAY)
        assert [e.message for e in result.errors] == ["Order total cannot exceed 1,000,000"]

    def test_discount_cannot_exceed_subtotal(self):
        request = OrderCreate(items=[item()], discount_amount=Decimal("100.01"))
        result = validate_order(request, TODAY)
        assert fields(result) == ["discount_amount"]

    def test_discount_equal_to_subtotal_allowed(self):
        request = OrderCreate(items=[item()], discount_amount=Decimal("100.00"))
        assert validate_order(request, TODAY).is_valid

    def test_unknown_payment_method(self):
        request = OrderCreate(items=[item()], payment_method="barter")
        assert fields(validate_order(request, TODAY)) == ["payment_method"]

    def test_payment_method_case_insensitive(self):
        assert validate_payment_method("Credit_Card").is_valid


class TestUpdateValidation:

    def test_actual_before_estimated(self):
        update = OrderUpdate(
            estimated_delivery_date=date(2026, 2, 10),
            actual_delivery_date=date(2026, 2, 9),
        )
        assert fields(validate_update_order_request(update)) == ["actual_delivery_date"]

    def test_actual_checked_against_stored_estimate(self):
        update = OrderUpdate(actual_delivery_date=date(2026, 2, 9))
        result = validate_update_order_request(update, current_estimated_delivery_date=date(2026, 2, 10))
        assert fields(result) == ["actual_delivery_date"]

    def test_negative_discount(self):
        assert fields(validate_update_order_request(OrderUpdate(discount_amount=Decimal("-5")))) == ["discount_amount"]


class TestOrderNumber:

    def test_valid(self):
        assert validate_order_number("ORD-20260115-0001").is_valid

    @pytest.mark.parametrize("value", ["", "ord-20260115-0001", "ORD-2026", "INV-1-2"])
    def test_invalid(self, value):
        assert not validate_order_number(value).is_valid

    def test_too_long(self):
        result = validate_order_number("ORD-" + "1" * 40 + "-" + "2" * 10)
        assert "cannot exceed 50 characters" in result.errors[0].message


class TestOutOfRangeNumbers:

    def test_huge_quantity_is_a_field_error(self):
        request = OrderCreate(items=[item(quantity=10**30, unit_price=Decimal("1.00"))])
        result = validate_order(request, TODAY)
        assert fields(result) == ["items[0].quantity"]

    def test_huge_unit_price_is_a_field_error(self):
        line = item(unit_price=Decimal("1e30"))
        assert fields(validate_order_item(line)) == ["unit_price"]
        assert fields(validate_order(OrderCreate(items=[line]), TODAY)) == ["items[0].unit_price"]

    def test_huge_discount_is_a_field_error(self):
        request = OrderCreate(items=[item()], discount_amount=Decimal("1e30"))
        assert fields(validate_order(request, TODAY)) == ["discount_amount"]

    def test_huge_update_discount_still_parses(self):
        update = OrderUpdate(discount_amount=Decimal("1e30"))
        assert update.discount_amount == Decimal("1e30")

    def test_business_rules_wait_for_valid_lines(self):
        request = OrderCreate(items=[item(quantity=0)])
        assert fields(validate_order(request, TODAY)) == ["items[0].quantity"]


class TestClearedEstimate:

    def test_cleared_estimate_is_not_compared(self):
        update = OrderUpdate(estimated_delivery_date=None, actual_delivery_date=date(2026, 2, 1))
        result = validate_update_order_request(update, current_estimated_delivery_date=date(2026, 2, 10))
        assert result.is_valid
