"""Breadcrumb trail for admin pages."""

from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional


class AdminRoute(NamedTuple):
    endpoint: str
    label: str
    parent: Optional[str] = None


ADMIN_ROUTES: List[AdminRoute] = [
    AdminRoute("dashboard.index", "Dashboard"),
    AdminRoute("categories.list_categories", "Categories", "dashboard.index"),
    AdminRoute("categories.create_category", "Create Category", "categories.list_categories"),
    AdminRoute("categories.view_category", "Category Details", "categories.list_categories"),
    AdminRoute("categories.edit_category", "Edit Category", "categories.list_categories"),
    AdminRoute("categories.confirm_delete_category", "Delete Category", "categories.list_categories"),
    AdminRoute("products.list_products", "Products", "dashboard.index"),
    AdminRoute("products.create_product", "Create Product", "products.list_products"),
    AdminRoute("products.edit_product", "Edit Product", "products.list_products"),
    AdminRoute("contacts.list_contacts", "Contacts", "dashboard.index"),
    AdminRoute("contacts.view_contact", "Contact Message", "contacts.list_contacts"),
    AdminRoute("profile.edit_profile", "Profile", "dashboard.index"),
]

_ROUTES_BY_ENDPOINT: Dict[str, AdminRoute] = {route.endpoint: route for route in ADMIN_ROUTES}


def build_breadcrumbs(endpoint: Optional[str]) -> List[AdminRoute]:
    """Return the trail from the dashboard down to ``endpoint``."""

    items: List[AdminRoute] = []
    seen = set()
    current = _ROUTES_BY_ENDPOINT.get(endpoint or "")
    while current is not None and current.endpoint not in seen:
        seen.add(current.endpoint)
        items.append(current)
        current = _ROUTES_BY_ENDPOINT.get(current.parent) if current.parent else None
    items.reverse()
    return items
