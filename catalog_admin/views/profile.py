from dataclasses import asdict

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from flask_login import login_required

from ..api import ApiError
from ..extensions import catalog_api
from ..storage import StorageError
from ..utils.access import current_permissions
from ..utils.uploads import has_upload, upload_image
from ..utils.validation import validate_profile_form


bp = Blueprint("profile", __name__, url_prefix="/profile")


@bp.route("/", methods=["GET", "POST"])
@login_required
def edit_profile():
    client = catalog_api.client
    profile = client.get_profile()
    can_edit = current_permissions().can_edit_settings

    if request.method == "GET":
        return render_template("profile/edit.html", profile=profile, form=asdict(profile), errors={}, can_edit=can_edit)

    if not can_edit:
        flash("You do not have permission to perform this action", "danger")
        return redirect(url_for("profile.edit_profile"))

    data, errors = validate_profile_form(request.form)
    if errors:
        return render_template("profile/edit.html", profile=profile, form=request.form, errors=errors, can_edit=can_edit), 400

    try:
        logo = request.files.get("logo")
        if has_upload(logo):
            data["logo"] = upload_image(logo, "profile")
        client.update_profile(data)
    except (StorageError, ApiError) as exc:
        message = exc.message if isinstance(exc, ApiError) else str(exc)
        current_app.logger.warning("Profile update failed: %s", message)
        flash(message or "Failed to update profile", "danger")
        return render_template("profile/edit.html", profile=profile, form=request.form, errors={}, can_edit=can_edit), 400

    flash("Profile updated successfully", "success")
    return redirect(url_for("profile.edit_profile"))
