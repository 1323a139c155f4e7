"""
Unit tests for catalog_admin.utils.validation.
"""
from catalog_admin.utils.validation import (
    validate_category_form,
    validate_product_form,
    validate_profile_form,
)


class TestCategoryForm:
    """Tests for validate_category_form."""

    def test_blank_slug_is_generated(self):
        data, errors = validate_category_form({"name": "Hot Drinks", "is_active": "1", "sort_order": "3"})

        assert errors == {}
        assert data == {
            "name": "Hot Drinks",
            "slug": "hot-drinks",
            "description": None,
            "sort_order": 3,
            "is_active": True,
        }

    def test_name_is_required(self):
        _, errors = validate_category_form({"name": "  "})

        assert errors["name"] == "Name is required"

    def test_long_fields_are_rejected(self):
        _, errors = validate_category_form({"name": "x" * 256, "slug": "ok", "description": "d" * 501})

        assert "255" in errors["name"]
        assert "500" in errors["description"]

    def test_invalid_slug(self):
        _, errors = validate_category_form({"name": "Tea", "slug": "Tea Time"})

        assert "slug" in errors

    def test_sort_order_must_be_integer(self):
        _, errors = validate_category_form({"name": "Tea", "sort_order": "first"})

        assert "sort_order" in errors

    def test_unchecked_box_is_inactive(self):
        data, _ = validate_category_form({"name": "Tea"})

        assert data["is_active"] is False


class TestProductForm:
    """Tests for validate_product_form."""

    def test_price_is_sent_as_text(self):
        data, errors = validate_product_form({"name": "Mug", "price": "12.50", "is_active": "on"})

        assert errors == {}
        assert data["price"] == "12.50"
        assert data["is_active"] is True

    def test_negative_price_is_rejected(self):
        data, errors = validate_product_form({"name": "Mug", "price": "-1"})

        assert "price" in errors
        assert data["price"] is None

    def test_non_numeric_price_is_rejected(self):
        _, errors = validate_product_form({"name": "Mug", "price": "cheap"})

        assert errors["price"] == "Price must be a number"

    def test_infinite_price_is_rejected(self):
        _, errors = validate_product_form({"name": "Mug", "price": "Infinity"})

        assert "price" in errors


class TestProfileForm:
    """Tests for validate_profile_form."""

    def test_company_name_required(self):
        _, errors = validate_profile_form({"company_name": ""})

        assert "company_name" in errors

    def test_email_shape(self):
        _, errors = validate_profile_form({"company_name": "Co", "email": "nobody"})

        assert errors == {"email": "Enter a valid email address"}

    def test_valid_profile(self):
        data, errors = validate_profile_form({"company_name": "Co", "email": "a@b.test", "phone": " 555 "})

        assert errors == {}
        assert data["phone"] == "555"
        assert data["address"] is None
