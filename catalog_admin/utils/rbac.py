"""Role based permissions for console operators."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: Dict[Role, str] = {
    Role.ADMIN: "Administrator",
    Role.MANAGER: "Manager",
    Role.STAFF: "Staff",
}

# Higher rank grants access to everything a lower rank can reach.
_ROLE_RANK: Dict[Role, int] = {
    Role.STAFF: 1,
    Role.MANAGER: 2,
    Role.ADMIN: 3,
}


@dataclass(frozen=True)
class Permission:
    can_create_category: bool = False
    can_edit_category: bool = False
    can_delete_category: bool = False
    can_view_category: bool = False

    can_create_product: bool = False
    can_edit_product: bool = False
    can_delete_product: bool = False
    can_view_product: bool = False

    can_view_contacts: bool = False
    can_manage_contacts: bool = False

    can_manage_users: bool = False
    can_edit_settings: bool = False


NO_PERMISSIONS = Permission()

_ROLE_PERMISSIONS: Dict[Role, Permission] = {
    Role.ADMIN: Permission(
        can_create_category=True,
        can_edit_category=True,
        can_delete_category=True,
        can_view_category=True,
        can_create_product=True,
        can_edit_product=True,
        can_delete_product=True,
        can_view_product=True,
        can_view_contacts=True,
        can_manage_contacts=True,
        can_manage_users=True,
        can_edit_settings=True,
    ),
    Role.MANAGER: Permission(
        can_create_category=True,
        can_edit_category=True,
        can_view_category=True,
        can_create_product=True,
        can_edit_product=True,
        can_view_product=True,
        can_view_contacts=True,
        can_manage_contacts=True,
    ),
    Role.STAFF: Permission(
        can_view_category=True,
        can_view_product=True,
        can_view_contacts=True,
    ),
}


def _check_complete(mapping: Dict[Role, object], name: str) -> None:
    missing = [role.value for role in Role if role not in mapping]
    if missing:
        raise RuntimeError(f"{name} has no entry for roles: {', '.join(missing)}")


for _mapping, _name in (
    (_ROLE_PERMISSIONS, "_ROLE_PERMISSIONS"),
    (_ROLE_RANK, "_ROLE_RANK"),
    (_DISPLAY_NAMES, "_DISPLAY_NAMES"),
):
    _check_complete(_mapping, _name)


def get_permissions(role: Optional[Role]) -> Permission:
    """Return the permission set granted to ``role``.

    ``None`` stands for an anonymous visitor and gets nothing.
    """

    if role is None:
        return NO_PERMISSIONS
    return _ROLE_PERMISSIONS[role]


def has_role(user_role: Role, required: Role) -> bool:
    return user_role is required


def has_minimum_role(user_role: Role, minimum: Role) -> bool:
    return _ROLE_RANK[user_role] >= _ROLE_RANK[minimum]


def has_any_role(user_role: Role, required: Iterable[Role]) -> bool:
    return user_role in set(required)


def is_admin(user_role: Role) -> bool:
    return user_role is Role.ADMIN


def is_manager_or_above(user_role: Role) -> bool:
    return has_minimum_role(user_role, Role.MANAGER)
