from typing import Callable, List, Optional, Sized

from flask import Blueprint, current_app, render_template
from flask_login import login_required

from ..api import ApiError
from ..extensions import catalog_api
from ..utils.access import current_permissions


bp = Blueprint("dashboard", __name__)


def _count(loader: Callable[[], Sized], label: str) -> Optional[int]:
    # Each figure is fetched on its own so one failing endpoint only blanks its card.
    try:
        return len(loader())
    except ApiError as exc:
        if exc.is_auth_error:
            raise
        current_app.logger.warning("Dashboard could not load %s: %s", label, exc.message)
        return None


@bp.route("/")
@login_required
def index():
    client = catalog_api.client
    permissions = current_permissions()
    cards: List[dict] = []
    if permissions.can_view_category:
        cards.append(
            {"label": "Categories", "value": _count(client.list_categories, "categories"),
             "endpoint": "categories.list_categories"}
        )
    if permissions.can_view_product:
        cards.append(
            {"label": "Products", "value": _count(client.list_products, "products"),
             "endpoint": "products.list_products"}
        )
    if permissions.can_view_contacts:
        cards.append(
            {"label": "New messages",
             "value": _count(lambda: [c for c in client.list_contacts() if c.is_new], "contacts"),
             "endpoint": "contacts.list_contacts"}
        )
    return render_template("dashboard/index.html", cards=cards)
