from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from flask_login import login_required

from ..api import ApiError
from ..extensions import catalog_api
from ..utils.access import permission_required
from ..utils.pagination import get_page_args, paginate_items


bp = Blueprint("contacts", __name__, url_prefix="/contacts")

STATUS_CHOICES = ("new", "read")


@bp.route("/")
@login_required
@permission_required("can_view_contacts")
def list_contacts():
    status = request.args.get("status", "").strip()
    page, per_page = get_page_args()
    try:
        contacts = catalog_api.client.list_contacts()
    except ApiError as exc:
        if exc.is_auth_error:
            raise
        current_app.logger.warning("Could not load contacts: %s", exc.message)
        flash(exc.message or "Failed to load contact messages", "danger")
        contacts = []
    if status in STATUS_CHOICES:
        contacts = [contact for contact in contacts if contact.status == status]
    contacts.sort(key=lambda contact: contact.created_at.timestamp() if contact.created_at else 0, reverse=True)
    pagination = paginate_items(contacts, page, per_page)
    return render_template(
        "contacts/list.html",
        contacts=pagination.items,
        pagination=pagination,
        filters={"status": status},
        status_choices=STATUS_CHOICES,
    )


@bp.route("/<contact_id>")
@login_required
@permission_required("can_view_contacts")
def view_contact(contact_id: str):
    client = catalog_api.client
    contact = client.get_contact(contact_id)
    if contact.is_new:
        try:
            contact = client.update_contact(contact.id, {"status": "read"})
        except ApiError as exc:
            current_app.logger.warning("Could not mark contact %s as read: %s", contact.id, exc.message)
    return render_template("contacts/detail.html", contact=contact)


@bp.route("/<contact_id>/delete", methods=["POST"])
@login_required
@permission_required("can_manage_contacts", "contacts.list_contacts")
def delete_contact(contact_id: str):
    try:
        catalog_api.client.delete_contact(contact_id)
    except ApiError as exc:
        current_app.logger.warning("Delete of contact %s failed: %s", contact_id, exc.message)
        flash(exc.message or "Failed to delete contact message", "danger")
    else:
        flash("Contact message deleted", "success")
    return redirect(url_for("contacts.list_contacts"))
