from typing import Any, Dict, Optional

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from flask_login import login_required

from ..api import ApiError
from ..extensions import catalog_api
from ..models import Product
from ..storage import StorageError
from ..utils.access import permission_required
from ..utils.pagination import get_page_args, paginate_items
from ..utils.uploads import has_upload, upload_image
from ..utils.validation import validate_product_form


bp = Blueprint("products", __name__, url_prefix="/products")

LIST_ENDPOINT = "products.list_products"


@bp.route("/")
@login_required
@permission_required("can_view_product")
def list_products():
    keyword = request.args.get("q", "").strip()
    page, per_page = get_page_args()
    try:
        products = catalog_api.client.list_products()
    except ApiError as exc:
        if exc.is_auth_error:
            raise
        current_app.logger.warning("Could not load products: %s", exc.message)
        flash(exc.message or "Failed to load products", "danger")
        products = []

    if keyword:
        needle = keyword.lower()
        products = [
            product
            for product in products
            if needle in product.name.lower() or needle in (product.short_description or "").lower()
        ]
    pagination = paginate_items(products, page, per_page)
    return render_template(
        "products/list.html",
        products=pagination.items,
        pagination=pagination,
        filters={"keyword": keyword},
    )


@bp.route("/create", methods=["GET", "POST"])
@login_required
@permission_required("can_create_product", LIST_ENDPOINT)
def create_product():
    if request.method == "GET":
        return render_template("products/form.html", product=None, form={"is_active": "1"}, errors={})

    data, errors = validate_product_form(request.form)
    if errors:
        return render_template("products/form.html", product=None, form=request.form, errors=errors), 400

    client = catalog_api.client
    try:
        product = client.create_product(data)
    except ApiError as exc:
        current_app.logger.warning("Create product failed: %s", exc.message)
        flash(exc.message or "Failed to create product", "danger")
        return render_template("products/form.html", product=None, form=request.form, errors={}), 400

    _attach_uploaded_image(product)
    flash("Product created successfully", "success")
    return redirect(url_for("products.edit_product", product_id=product.id))


@bp.route("/<product_id>/edit", methods=["GET", "POST"])
@login_required
@permission_required("can_edit_product", LIST_ENDPOINT)
def edit_product(product_id: str):
    client = catalog_api.client
    product = client.get_product(product_id)
    if request.method == "GET":
        return render_template("products/form.html", product=product, form=_product_form(product), errors={})

    data, errors = validate_product_form(request.form)
    if errors:
        return render_template("products/form.html", product=product, form=request.form, errors=errors), 400
    try:
        client.update_product(product.id, data)
    except ApiError as exc:
        current_app.logger.warning("Update of product %s failed: %s", product.id, exc.message)
        flash(exc.message or "Failed to update product", "danger")
        return render_template("products/form.html", product=product, form=request.form, errors={}), 400

    _attach_uploaded_image(product)
    flash("Product updated successfully", "success")
    return redirect(url_for(LIST_ENDPOINT))


@bp.route("/<product_id>/delete", methods=["POST"])
@login_required
@permission_required("can_delete_product", LIST_ENDPOINT)
def delete_product(product_id: str):
    try:
        catalog_api.client.delete_product(product_id)
    except ApiError as exc:
        current_app.logger.warning("Delete of product %s failed: %s", product_id, exc.message)
        flash(exc.message or "Failed to delete product", "danger")
        return redirect(url_for(LIST_ENDPOINT))
    flash("Product deleted successfully", "success")
    return redirect(url_for(LIST_ENDPOINT))


@bp.route("/<product_id>/images/<image_id>/delete", methods=["POST"])
@login_required
@permission_required("can_edit_product", LIST_ENDPOINT)
def remove_image(product_id: str, image_id: str):
    try:
        catalog_api.client.remove_product_image(image_id)
    except ApiError as exc:
        flash(exc.message or "Failed to remove image", "danger")
    else:
        flash("Image removed", "success")
    return redirect(url_for("products.edit_product", product_id=product_id))


def _attach_uploaded_image(product: Product) -> None:
    """Upload the optional image field; failures keep the saved product."""

    file = request.files.get("image")
    if not has_upload(file):
        return
    try:
        path = upload_image(file, "product")
        next_order = max((image.sort_order for image in product.images), default=-1) + 1
        catalog_api.client.add_product_image(product.id, path, sort_order=next_order)
    except (StorageError, ApiError) as exc:
        message = exc.message if isinstance(exc, ApiError) else str(exc)
        current_app.logger.warning("Image upload for product %s failed: %s", product.id, message)
        flash(f"The product was saved but the image was not: {message}", "warning")


def _product_form(product: Product) -> Dict[str, Optional[Any]]:
    return {
        "name": product.name,
        "price": "" if product.price is None else str(product.price),
        "short_description": product.short_description or "",
        "description": product.description or "",
        "is_active": "1" if product.is_active else "",
    }
