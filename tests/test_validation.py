"""
Tests for the field validation functions.

All tests are pure: no database, no app.
"""

from decimal import Decimal

import pytest

from inventory_tracker.validation import (
    CATEGORIES,
    COUNT_MAX,
    PRICE_MAX,
    normalize_email,
    normalize_item_fields,
    validate_item_fields,
    validate_registration,
)


def _fields(**overrides):
    fields = {
        "name": "Widget",
        "description": "A widget",
        "category": "Toys",
        "quantity": 1,
        "price": Decimal("2.50"),
    }
    fields.update(overrides)
    return normalize_item_fields(fields)


def _error_fields(errors):
    return {e.field for e in errors}


class TestItemValidation:

    def test_valid_item_has_no_errors(self):
        assert validate_item_fields(_fields()) == []

    @pytest.mark.parametrize("category", CATEGORIES)
    def test_every_category_is_accepted(self, category):
        assert validate_item_fields(_fields(category=category)) == []

    def test_unknown_category_rejected(self):
        errors = validate_item_fields(_fields(category="Weapons"))
        assert _error_fields(errors) == {"category"}
        assert "Weapons" in errors[0].message

    def test_missing_required_fields_on_create(self):
        errors = validate_item_fields(normalize_item_fields({}))
        assert _error_fields(errors) == {"name", "category", "quantity", "price"}

    def test_partial_update_checks_only_present_fields(self):
        assert validate_item_fields(normalize_item_fields({"quantity": 0}), partial=True) == []

    @pytest.mark.parametrize("name", ["A", "x" * 101, "  a  "])
    def test_name_length_bounds(self, name):
        assert _error_fields(validate_item_fields(_fields(name=name))) == {"name"}

    def test_name_is_trimmed_before_length_check(self):
        cleaned = _fields(name="  Ok  ")
        assert cleaned["name"] == "Ok"
        assert validate_item_fields(cleaned) == []

    def test_description_limit(self):
        assert validate_item_fields(_fields(description="d" * 500)) == []
        assert _error_fields(validate_item_fields(_fields(description="d" * 501))) == {"description"}

    def test_negative_quantity_rejected(self):
        assert _error_fields(validate_item_fields(_fields(quantity=-1))) == {"quantity"}

    @pytest.mark.parametrize("quantity", [1.5, "3", True])
    def test_quantity_must_be_integer(self, quantity):
        assert _error_fields(validate_item_fields(_fields(quantity=quantity))) == {"quantity"}

    def test_zero_quantity_and_price_allowed(self):
        assert validate_item_fields(_fields(quantity=0, price=Decimal("0"))) == []

    def test_negative_price_rejected(self):
        assert _error_fields(validate_item_fields(_fields(price="-0.01"))) == {"price"}

    def test_price_with_sub_cent_precision_rejected(self):
        assert _error_fields(validate_item_fields(_fields(price="1.005"))) == {"price"}

    def test_price_string_and_float_are_converted(self):
        assert _fields(price="12.30")["price"] == Decimal("12.30")
        assert _fields(price=0.1)["price"] == Decimal("0.1")

    @pytest.mark.parametrize("price", ["abc", "NaN", True])
    def test_non_numeric_price_rejected(self, price):
        assert _error_fields(validate_item_fields(_fields(price=price))) == {"price"}

    def test_negative_threshold_rejected(self):
        assert _error_fields(validate_item_fields(_fields(low_stock_threshold=-5))) == {"low_stock_threshold"}

    def test_blank_sku_allowed_on_create_but_not_on_update(self):
        assert validate_item_fields(_fields(sku="   ")) == []
        errors = validate_item_fields(normalize_item_fields({"sku": ""}), partial=True)
        assert _error_fields(errors) == {"sku"}

    def test_null_required_field_rejected_on_update(self):
        errors = validate_item_fields(normalize_item_fields({"price": None}), partial=True)
        assert _error_fields(errors) == {"price"}

    def test_unknown_keys_are_dropped(self):
        cleaned = normalize_item_fields({"name": "Widget", "owner_id": "x", "created_at": "y"})
        assert cleaned == {"name": "Widget"}

    @pytest.mark.parametrize("field", ["quantity", "low_stock_threshold"])
    def test_counts_fit_an_integer_column(self, field):
        assert validate_item_fields(_fields(**{field: COUNT_MAX})) == []
        assert _error_fields(validate_item_fields(_fields(**{field: COUNT_MAX + 1}))) == {field}
        assert _error_fields(validate_item_fields(_fields(**{field: 10**20}))) == {field}

    def test_price_fits_the_money_column(self):
        assert validate_item_fields(_fields(price=PRICE_MAX)) == []
        assert _error_fields(validate_item_fields(_fields(price=PRICE_MAX + Decimal("0.01")))) == {"price"}

    def test_update_rejects_out_of_range_counts(self):
        errors = validate_item_fields(normalize_item_fields({"quantity": COUNT_MAX + 1}), partial=True)
        assert _error_fields(errors) == {"quantity"}

    def test_several_errors_reported_together(self):
        errors = validate_item_fields(_fields(name="", quantity=-1, price="-1"))
        assert _error_fields(errors) == {"name", "quantity", "price"}


class TestRegistrationValidation:

    def test_valid_registration(self):
        assert validate_registration("Alice", "alice@example.com", "secret") == []

    def test_all_problems_reported(self):
        errors = validate_registration("  ", "not-an-email", "12345")
        assert _error_fields(errors) == {"name", "email", "password"}

    def test_password_minimum_is_six(self):
        assert validate_registration("A", "a@b.co", "123456") == []
        assert _error_fields(validate_registration("A", "a@b.co", "12345")) == {"password"}

    @pytest.mark.parametrize("email", ["alice@", "@example.com", "alice example@example.com", "alice@example"])
    def test_malformed_email_rejected(self, email):
        assert _error_fields(validate_registration("Alice", email, "secret123")) == {"email"}

    def test_overlong_email_rejected(self):
        email = "a" * 60 + "@" + ("b" * 60 + ".") * 4 + "com"
        assert len(email) > 255
        assert _error_fields(validate_registration("Alice", email, "secret123")) == {"email"}

    def test_overlong_name_rejected(self):
        assert _error_fields(validate_registration("n" * 101, "alice@example.com", "secret123")) == {"name"}

    def test_email_normalization(self):
        assert normalize_email("  Alice@Example.COM ") == "alice@example.com"
