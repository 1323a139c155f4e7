"""Form validation for catalog records.

Validators return ``(data, errors)``; ``errors`` maps field names to a
message and a non-empty dict means the request must not be sent.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Tuple

from ..constants import DESCRIPTION_MAX_LENGTH, NAME_MAX_LENGTH
from .slug import generate_slug, is_valid_slug

FormErrors = Dict[str, str]


def _text(form: Mapping[str, Any], key: str) -> str:
    return (form.get(key) or "").strip()


def _checkbox(form: Mapping[str, Any], key: str) -> bool:
    return form.get(key) in ("1", "on", "true", "yes")


def _validate_name(name: str, errors: FormErrors) -> None:
    if not name:
        errors["name"] = "Name is required"
    elif len(name) > NAME_MAX_LENGTH:
        errors["name"] = f"Name must not exceed {NAME_MAX_LENGTH} characters"


def _validate_description(description: str, errors: FormErrors, field: str = "description") -> None:
    if len(description) > DESCRIPTION_MAX_LENGTH:
        errors[field] = f"Description must not exceed {DESCRIPTION_MAX_LENGTH} characters"


def validate_category_form(form: Mapping[str, Any]) -> Tuple[Dict[str, Any], FormErrors]:
    """Validate the category fields other than the parent.

    A blank slug is generated from the name.
    """

    errors: FormErrors = {}
    name = _text(form, "name")
    _validate_name(name, errors)

    slug = _text(form, "slug") or generate_slug(name)
    if not is_valid_slug(slug):
        errors["slug"] = "Invalid slug format. Use lowercase letters, numbers, and hyphens only."

    description = _text(form, "description")
    _validate_description(description, errors)

    sort_order = 0
    sort_raw = _text(form, "sort_order")
    if sort_raw:
        try:
            sort_order = int(sort_raw)
        except ValueError:
            errors["sort_order"] = "Sort order must be a whole number"

    data = {
        "name": name,
        "slug": slug,
        "description": description or None,
        "sort_order": sort_order,
        "is_active": _checkbox(form, "is_active"),
    }
    return data, errors


def validate_product_form(form: Mapping[str, Any]) -> Tuple[Dict[str, Any], FormErrors]:
    errors: FormErrors = {}
    name = _text(form, "name")
    _validate_name(name, errors)

    price = None
    price_raw = _text(form, "price")
    if price_raw:
        try:
            price = Decimal(price_raw)
        except InvalidOperation:
            errors["price"] = "Price must be a number"
        else:
            if not price.is_finite() or price < 0:
                errors["price"] = "Price must be zero or more"

    short_description = _text(form, "short_description")
    _validate_description(short_description, errors, field="short_description")
    description = _text(form, "description")

    data = {
        "name": name,
        "price": str(price) if price is not None and "price" not in errors else None,
        "short_description": short_description or None,
        "description": description or None,
        "is_active": _checkbox(form, "is_active"),
    }
    return data, errors


def validate_profile_form(form: Mapping[str, Any]) -> Tuple[Dict[str, Any], FormErrors]:
    errors: FormErrors = {}
    company_name = _text(form, "company_name")
    if not company_name:
        errors["company_name"] = "Company name is required"
    elif len(company_name) > NAME_MAX_LENGTH:
        errors["company_name"] = f"Company name must not exceed {NAME_MAX_LENGTH} characters"

    email = _text(form, "email")
    if email and ("@" not in email or email.startswith("@") or email.endswith("@")):
        errors["email"] = "Enter a valid email address"

    data = {
        "company_name": company_name,
        "phone": _text(form, "phone") or None,
        "address": _text(form, "address") or None,
        "email": email or None,
    }
    return data, errors
