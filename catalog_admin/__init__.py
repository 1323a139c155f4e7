import os

import click
from flask import Flask, flash, redirect, render_template, request, session, url_for
from flask_login import current_user, logout_user

from .api import ApiError
from .constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_TIMEOUT,
    DEFAULT_BRAND_COLOR,
    DEFAULT_SIGNED_URL_CACHE_SIZE,
    DEFAULT_SIGNED_URL_TTL,
    DEFAULT_STORAGE_BUCKET,
    SESSION_TOKEN_KEY,
    SESSION_USER_KEY,
)
from .extensions import catalog_api, login_manager, media_storage
from .models import AdminUser
from .utils.access import current_permissions
from .utils.breadcrumbs import build_breadcrumbs
from .utils.pagination import PER_PAGE_OPTIONS, page_url
from .utils.rbac import Permission


NAV_SECTIONS = [
    {
        "key": "dashboard",
        "title": "Overview",
        "items": [
            {"endpoint": "dashboard.index", "label": "Dashboard"},
        ],
        "prefixes": ["dashboard."],
    },
    {
        "key": "catalog",
        "title": "Catalog",
        "items": [
            {"endpoint": "categories.list_categories", "label": "Categories", "permission": "can_view_category"},
            {"endpoint": "categories.create_category", "label": "New Category", "permission": "can_create_category"},
            {"endpoint": "products.list_products", "label": "Products", "permission": "can_view_product"},
            {"endpoint": "products.create_product", "label": "New Product", "permission": "can_create_product"},
        ],
        "prefixes": ["categories.", "products."],
    },
    {
        "key": "contacts",
        "title": "Customers",
        "items": [
            {"endpoint": "contacts.list_contacts", "label": "Contact Messages", "permission": "can_view_contacts"},
        ],
        "prefixes": ["contacts."],
    },
    {
        "key": "settings",
        "title": "Settings",
        "items": [
            {"endpoint": "profile.edit_profile", "label": "Business Profile"},
        ],
        "prefixes": ["profile."],
    },
]


def _resolve_active_section(endpoint: str) -> str:
    """Key of the sidebar section that owns ``endpoint``, else the first one."""

    for section in NAV_SECTIONS:
        if any(item["endpoint"] == endpoint for item in section["items"]):
            return section["key"]
    if endpoint:
        for section in NAV_SECTIONS:
            if endpoint.startswith(tuple(section["prefixes"])):
                return section["key"]
    return NAV_SECTIONS[0]["key"]


def _item_allowed(item: dict, permissions: Permission) -> bool:
    flag = item.get("permission")
    return flag is None or getattr(permissions, flag)


def _visible_sections(permissions: Permission) -> list:
    visible = []
    for section in NAV_SECTIONS:
        items = [item for item in section["items"] if _item_allowed(item, permissions)]
        if items:
            visible.append({"key": section["key"], "title": section["title"], "items": items})
    return visible


def create_app(test_config=None):
    app = Flask(__name__, instance_relative_config=True)

    secret_key = os.environ.get("SECRET_KEY")
    if not secret_key or not secret_key.strip():
        secret_key = "dev-secret-key"

    api_base_url = os.environ.get("API_BASE_URL", "")
    if not api_base_url.strip():
        api_base_url = DEFAULT_API_BASE_URL

    app.config.from_mapping(
        SECRET_KEY=secret_key,
        API_BASE_URL=api_base_url,
        API_TIMEOUT=float(os.environ.get("API_TIMEOUT") or DEFAULT_API_TIMEOUT),
        API_TOKEN=os.environ.get("API_TOKEN") or None,
        API_TRANSPORT=None,
        STORAGE_URL=os.environ.get("STORAGE_URL", ""),
        STORAGE_SERVICE_KEY=os.environ.get("STORAGE_SERVICE_KEY", ""),
        STORAGE_BUCKET=os.environ.get("STORAGE_BUCKET") or DEFAULT_STORAGE_BUCKET,
        STORAGE_TRANSPORT=None,
        SIGNED_URL_TTL=int(os.environ.get("SIGNED_URL_TTL") or DEFAULT_SIGNED_URL_TTL),
        SIGNED_URL_CACHE_SIZE=int(os.environ.get("SIGNED_URL_CACHE_SIZE") or DEFAULT_SIGNED_URL_CACHE_SIZE),
        MAX_CONTENT_LENGTH=5 * 1024 * 1024,
    )

    if test_config:
        app.config.update(test_config)

    register_extensions(app)
    register_blueprints(app)
    register_error_handlers(app)
    register_commands(app)

    @login_manager.user_loader
    def load_user(user_id):
        payload = session.get(SESSION_USER_KEY)
        if not payload or str(payload.get("id")) != str(user_id):
            return None
        try:
            return AdminUser.from_dict(payload)
        except (KeyError, ValueError):
            app.logger.warning("Discarding session with an unusable user payload")
            return None

    @app.context_processor
    def inject_navigation():
        permissions = current_permissions()
        endpoint = request.endpoint or ""
        return {
            "permissions": permissions,
            "system_brand_color": DEFAULT_BRAND_COLOR,
            "system_nav_sections": _visible_sections(permissions),
            "system_active_nav_key": _resolve_active_section(endpoint),
            "breadcrumbs": build_breadcrumbs(endpoint),
        }

    @app.context_processor
    def inject_helpers():
        return {
            "pagination_per_page_options": PER_PAGE_OPTIONS,
            "page_url": page_url,
            "signed_image_url": media_storage.image_url,
        }

    return app


def register_extensions(app: Flask) -> None:
    catalog_api.init_app(app)
    media_storage.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = "auth.login"
    login_manager.login_message = "Please sign in to continue."
    login_manager.login_message_category = "warning"


def register_blueprints(app: Flask) -> None:
    from .views import auth, categories, contacts, dashboard, products, profile

    app.register_blueprint(auth.bp)
    app.register_blueprint(dashboard.bp)
    app.register_blueprint(categories.bp)
    app.register_blueprint(products.bp)
    app.register_blueprint(contacts.bp)
    app.register_blueprint(profile.bp)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(exc: ApiError):
        if exc.is_auth_error:
            app.logger.info("Backend rejected the session token; signing out")
            logout_user()
            session.pop(SESSION_TOKEN_KEY, None)
            session.pop(SESSION_USER_KEY, None)
            flash("Your session has expired. Please sign in again.", "warning")
            return redirect(url_for("auth.login"))
        app.logger.error("Unhandled catalog API error on %s: %s", request.path, exc)
        if exc.is_forbidden:
            status = 403
        elif exc.is_not_found:
            status = 404
        else:
            status = 502
        return render_template("errors/api_error.html", error=exc), status


def register_commands(app: Flask) -> None:
    from .utils.category_tree import (
        build_category_tree,
        find_cyclic_keys,
        find_level_mismatches,
        find_orphan_keys,
        format_category_outline,
    )

    @app.cli.command("category-tree")
    def category_tree() -> None:
        """Print the category hierarchy as an indented outline."""
        categories = catalog_api.client.list_categories()
        for line in format_category_outline(build_category_tree(categories)):
            click.echo(line)

    @app.cli.command("check-tree")
    def check_tree() -> None:
        """Report orphaned, circular and mis-levelled categories."""
        categories = catalog_api.client.list_categories()
        names = {category.id: category.name for category in categories}
        orphans = find_orphan_keys(categories)
        cyclic = find_cyclic_keys(categories)
        mismatched = find_level_mismatches(categories)
        for key in orphans:
            click.echo(f"orphan: {names[key]} ({key}) points to a missing parent")
        for key in cyclic:
            click.echo(f"cycle: {names[key]} ({key}) never reaches a root category")
        for category in mismatched:
            click.echo(f"level: {category.name} ({category.id}) stores level {category.level}")
        if not (orphans or cyclic or mismatched):
            click.echo("Category tree is consistent.")
        else:
            raise SystemExit(1)
