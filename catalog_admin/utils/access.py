"""Permission checks for the signed-in operator."""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable

from flask import flash, redirect, url_for
from flask_login import current_user

from .rbac import NO_PERMISSIONS, Permission, get_permissions


def current_permissions() -> Permission:
    if not current_user.is_authenticated:
        return NO_PERMISSIONS
    return get_permissions(current_user.role)


def permission_required(flag: str, redirect_endpoint: str = "dashboard.index") -> Callable:
    """Redirect with a flash message unless the operator holds ``flag``.

    Buttons are already hidden in the templates; this is the check that
    applies to hand-crafted requests.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapped(*args: Any, **kwargs: Any) -> Any:
            if not getattr(current_permissions(), flag):
                flash("You do not have permission to perform this action", "danger")
                return redirect(url_for(redirect_endpoint))
            return func(*args, **kwargs)

        return wrapped

    return decorator
