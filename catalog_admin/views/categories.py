from typing import Any, Dict, List, Optional

from flask import Blueprint, current_app, flash, jsonify, redirect, render_template, request, url_for
from flask_login import login_required

from ..api import ApiError
from ..extensions import catalog_api
from ..models import Category
from ..storage import StorageError
from ..utils.access import current_permissions, permission_required
from ..utils.category_delete import confirm_delete, prepare_delete
from ..utils.category_select import ParentSelectionError, ParentSelector, load_parent_selector
from ..utils.category_tree import (
    build_category_tree,
    find_cyclic_keys,
    find_node,
    find_orphan_keys,
    get_node_path,
)
from ..utils.slug import ensure_unique_slug
from ..utils.tree_table import ExpansionState, build_tree_rows, row_actions
from ..utils.uploads import has_upload, upload_image
from ..utils.validation import validate_category_form


bp = Blueprint("categories", __name__, url_prefix="/categories")

LIST_ENDPOINT = "categories.list_categories"


@bp.route("/")
@login_required
@permission_required("can_view_category")
def list_categories():
    categories = _load_categories()

    expansion = ExpansionState.from_session()
    expansion.prune(category.id for category in categories)
    expansion.save()

    cyclic = find_cyclic_keys(categories)
    if cyclic:
        flash(f"{len(cyclic)} categories have a circular parent chain; each cycle is shown from the top level", "warning")
    orphans = find_orphan_keys(categories)
    if orphans:
        current_app.logger.info("%d categories reference a missing parent", len(orphans))

    return render_template(
        "categories/list.html",
        category_rows=build_tree_rows(categories, expansion),
        row_actions=row_actions(current_permissions()),
        has_categories=bool(categories),
    )


@bp.route("/<category_id>/toggle", methods=["POST"])
@login_required
@permission_required("can_view_category")
def toggle_category(category_id: str):
    expansion = ExpansionState.from_session()
    expansion.toggle(category_id)
    expansion.save()
    return redirect(url_for(LIST_ENDPOINT, _anchor=f"category-{category_id}"))


@bp.route("/expand-all", methods=["POST"])
@login_required
@permission_required("can_view_category")
def expand_all():
    expansion = ExpansionState.from_session()
    expansion.expand_all(category.id for category in _load_categories())
    expansion.save()
    return redirect(url_for(LIST_ENDPOINT))


@bp.route("/collapse-all", methods=["POST"])
@login_required
@permission_required("can_view_category")
def collapse_all():
    expansion = ExpansionState.from_session()
    expansion.collapse_all()
    expansion.save()
    return redirect(url_for(LIST_ENDPOINT))


@bp.route("/parent-options")
@login_required
@permission_required("can_view_category")
def parent_options():
    selector = load_parent_selector(catalog_api.client, request.args.get("exclude_id") or None)
    return jsonify(
        {
            "options": [option.to_dict() for option in selector.search(request.args.get("q"))],
            "error": selector.error,
        }
    )


@bp.route("/create", methods=["GET", "POST"])
@login_required
@permission_required("can_create_category", LIST_ENDPOINT)
def create_category():
    client = catalog_api.client
    selector = load_parent_selector(client)

    if request.method == "GET":
        form = {"parent_id": request.args.get("parent_id", ""), "is_active": "1", "sort_order": "0"}
        return _render_form("categories/create.html", selector, form)

    data, errors = validate_category_form(request.form)
    parent_id = _resolve_parent(selector, errors)
    if errors:
        return _render_form("categories/create.html", selector, request.form, errors), 400

    data["parent_id"] = parent_id
    if not request.form.get("slug", "").strip():
        data["slug"] = _unique_slug(data["slug"])
    try:
        media_id = _store_category_image()
        if media_id:
            data["media_id"] = media_id
        category = client.create_category(data)
    except StorageError as exc:
        flash(str(exc), "danger")
        return _render_form("categories/create.html", selector, request.form), 400
    except ApiError as exc:
        current_app.logger.warning("Create category failed: %s", exc.message)
        flash(exc.message or "Failed to create category", "danger")
        return _render_form("categories/create.html", selector, request.form), 400

    current_app.logger.info("Category %s created", category.id)
    flash("Category created successfully", "success")
    if parent_id:
        expansion = ExpansionState.from_session()
        expansion.expand(parent_id)
        expansion.save()
    return redirect(url_for(LIST_ENDPOINT))


@bp.route("/<category_id>")
@login_required
@permission_required("can_view_category")
def view_category(category_id: str):
    category = catalog_api.client.get_category(category_id)
    categories = _load_categories()
    node = find_node(build_category_tree(categories), category.id)
    path = [item.data for item in get_node_path(node)] if node else [category]
    children = [child.data for child in node.children] if node else []
    return render_template(
        "categories/detail.html",
        category=category,
        path=path,
        children=children,
        preview=prepare_delete(category, categories),
    )


@bp.route("/<category_id>/edit")
@login_required
@permission_required("can_edit_category", LIST_ENDPOINT)
def edit_category(category_id: str):
    client = catalog_api.client
    category = client.get_category(category_id)
    selector = load_parent_selector(client, exclude_id=category.id)
    return _render_form("categories/edit.html", selector, _category_form(category), category=category)


@bp.route("/<category_id>/update", methods=["POST"])
@login_required
@permission_required("can_edit_category", LIST_ENDPOINT)
def update_category(category_id: str):
    client = catalog_api.client
    category = client.get_category(category_id)
    selector = load_parent_selector(client, exclude_id=category.id)

    data, errors = validate_category_form(request.form)
    # The select is disabled when the parent list failed to load, so nothing is posted for it.
    if selector.error or "parent_id" not in request.form:
        parent_id = category.parent_id
    else:
        parent_id = _resolve_parent(selector, errors)
    if errors:
        return _render_form("categories/edit.html", selector, request.form, errors, category=category), 400

    data["parent_id"] = parent_id
    try:
        media_id = _store_category_image()
        if media_id:
            data["media_id"] = media_id
        client.update_category(category.id, data)
    except StorageError as exc:
        flash(str(exc), "danger")
        return _render_form("categories/edit.html", selector, request.form, category=category), 400
    except ApiError as exc:
        current_app.logger.warning("Update of category %s failed: %s", category.id, exc.message)
        flash(exc.message or "Failed to update category", "danger")
        return _render_form("categories/edit.html", selector, request.form, category=category), 400

    flash("Category updated successfully", "success")
    return redirect(url_for(LIST_ENDPOINT))


@bp.route("/<category_id>/delete")
@login_required
@permission_required("can_delete_category", LIST_ENDPOINT)
def confirm_delete_category(category_id: str):
    category = catalog_api.client.get_category(category_id)
    preview = prepare_delete(category, _load_categories())
    return render_template("categories/delete.html", category=category, preview=preview)


@bp.route("/<category_id>/delete", methods=["POST"])
@login_required
@permission_required("can_delete_category", LIST_ENDPOINT)
def delete_category(category_id: str):
    client = catalog_api.client
    category = client.get_category(category_id)
    preview = prepare_delete(category, client.list_categories())
    try:
        confirm_delete(client, category, cascade=preview.has_children)
    except ApiError as exc:
        current_app.logger.warning("Delete of category %s failed: %s", category.id, exc.message)
        return (
            render_template(
                "categories/delete.html",
                category=category,
                preview=preview,
                error=exc.message or "Failed to delete category",
            ),
            400,
        )

    current_app.logger.info(
        "Category %s deleted (cascade=%s, direct children=%d)",
        category.id,
        preview.has_children,
        preview.child_count,
    )
    flash("Category deleted successfully", "success")
    return redirect(url_for(LIST_ENDPOINT))


def _load_categories() -> List[Category]:
    try:
        return catalog_api.client.list_categories()
    except ApiError as exc:
        if exc.is_auth_error:
            raise
        current_app.logger.warning("Could not load categories: %s", exc.message)
        flash(exc.message or "Failed to load categories", "danger")
        return []


def _resolve_parent(selector: ParentSelector, errors: Dict[str, str]) -> Optional[str]:
    try:
        return selector.resolve(request.form.get("parent_id"))
    except ParentSelectionError as exc:
        errors["parent_id"] = str(exc)
        return None


def _unique_slug(slug: str) -> str:
    try:
        existing = [category.slug for category in catalog_api.client.list_categories()]
    except ApiError:
        return slug
    return ensure_unique_slug(slug, existing)


def _store_category_image() -> Optional[str]:
    file = request.files.get("image")
    if not has_upload(file):
        return None
    path = upload_image(file, "category")
    media = catalog_api.client.create_media(
        {
            "file_name": file.filename,
            "file_url": path,
            "media_type": "image",
            "mime_type": file.mimetype,
        }
    )
    return media.id


def _category_form(category: Category) -> Dict[str, Any]:
    return {
        "name": category.name,
        "slug": category.slug,
        "description": category.description or "",
        "parent_id": category.parent_id or "",
        "sort_order": str(category.sort_order),
        "is_active": "1" if category.is_active else "",
    }


def _render_form(
    template: str,
    selector: ParentSelector,
    form: Any,
    errors: Optional[Dict[str, str]] = None,
    **context: Any,
):
    return render_template(template, selector=selector, form=form, errors=errors or {}, **context)
