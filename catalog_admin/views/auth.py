from flask import Blueprint, current_app, flash, redirect, render_template, request, session, url_for
from flask_login import current_user, login_required, login_user, logout_user

from ..api import ApiError
from ..constants import SESSION_EXPANDED_KEY, SESSION_TOKEN_KEY, SESSION_USER_KEY
from ..extensions import catalog_api
from ..models import AdminUser


bp = Blueprint("auth", __name__)


def _safe_next_url(target: str) -> str:
    # Only same-site relative paths are followed after login.
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return url_for("dashboard.index")


@bp.route("/login", methods=["GET", "POST"])
def login():
    if current_user.is_authenticated:
        return redirect(url_for("dashboard.index"))

    if request.method == "POST":
        username = request.form.get("username", "").strip()
        password = request.form.get("password", "")
        if not username or not password:
            flash("Please enter your username and password", "danger")
            return render_template("auth/login.html", username=username), 400

        try:
            result = catalog_api.client.login(username, password)
            user = AdminUser.from_dict(result["user"])
        except ApiError as exc:
            current_app.logger.info("Login failed for %s: %s", username, exc.message)
            message = "Invalid username or password" if exc.status in (400, 401) else exc.message
            flash(message, "danger")
            return render_template("auth/login.html", username=username), 401
        except (KeyError, ValueError):
            current_app.logger.warning("Login for %s returned an unsupported user payload", username)
            flash("This account has a role the console does not support", "danger")
            return render_template("auth/login.html", username=username), 403

        session[SESSION_TOKEN_KEY] = result["token"]
        session[SESSION_USER_KEY] = user.to_dict()
        login_user(user)
        current_app.logger.info("%s signed in as %s", user.username, user.role.value)
        return redirect(_safe_next_url(request.args.get("next", "")))

    return render_template("auth/login.html", username="")


@bp.route("/logout")
@login_required
def logout():
    try:
        catalog_api.client.logout()
    except ApiError as exc:
        current_app.logger.warning("Backend logout failed: %s", exc.message)
    logout_user()
    for key in (SESSION_TOKEN_KEY, SESSION_USER_KEY, SESSION_EXPANDED_KEY):
        session.pop(key, None)
    flash("You have been signed out", "success")
    return redirect(url_for("auth.login"))
