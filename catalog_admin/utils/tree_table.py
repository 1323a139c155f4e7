"""Expandable category table rows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, TypedDict

from flask import session

from ..constants import INDENT_WIDTH, SESSION_EXPANDED_KEY
from ..models import Category
from .category_tree import TreeNode, build_category_tree
from .rbac import Permission


class TreeRow(TypedDict):
    """A visible table row with hierarchy metadata."""

    category: Category
    level: int
    has_children: bool
    parent_key: Optional[str]
    is_expanded: bool
    indent: int


class ExpansionState:
    """The set of category ids the operator has expanded."""

    def __init__(self, expanded: Iterable[str] = ()) -> None:
        self._expanded: Set[str] = {str(key) for key in expanded}

    def __contains__(self, key: object) -> bool:
        return key in self._expanded

    def __len__(self) -> int:
        return len(self._expanded)

    @property
    def keys(self) -> Set[str]:
        return set(self._expanded)

    def expand(self, key: str) -> None:
        self._expanded.add(str(key))

    def collapse(self, key: str) -> None:
        self._expanded.discard(str(key))

    def toggle(self, key: str) -> bool:
        """Flip ``key`` and return whether it is now expanded."""

        key = str(key)
        if key in self._expanded:
            self._expanded.remove(key)
            return False
        self._expanded.add(key)
        return True

    def expand_all(self, keys: Iterable[str]) -> None:
        self._expanded = {str(key) for key in keys}

    def collapse_all(self) -> None:
        self._expanded = set()

    def prune(self, known_keys: Iterable[str]) -> None:
        """Forget ids that no longer exist."""

        self._expanded &= {str(key) for key in known_keys}

    @classmethod
    def from_session(cls) -> "ExpansionState":
        return cls(session.get(SESSION_EXPANDED_KEY, []))

    def save(self) -> None:
        session[SESSION_EXPANDED_KEY] = sorted(self._expanded)


def build_tree_rows(categories: List[Category], expansion: ExpansionState) -> List[TreeRow]:
    tree = build_category_tree(categories)
    rows: List[TreeRow] = []
    _collect_rows(tree, expansion, rows, level=0, parent_key=None)
    return rows


def _collect_rows(
    nodes: List[TreeNode[Category]],
    expansion: ExpansionState,
    rows: List[TreeRow],
    level: int,
    parent_key: Optional[str],
) -> None:
    for node in nodes:
        has_children = bool(node.children)
        is_expanded = has_children and node.key in expansion
        rows.append(
            TreeRow(
                category=node.data,
                level=level,
                has_children=has_children,
                parent_key=parent_key,
                is_expanded=is_expanded,
                indent=level * INDENT_WIDTH,
            )
        )
        if is_expanded:
            _collect_rows(node.children, expansion, rows, level + 1, node.key)


@dataclass(frozen=True)
class RowAction:
    name: str
    label: str
    endpoint: str
    method: str = "GET"
    style: str = "secondary"


ADD_CHILD = RowAction("add_child", "Add child", "categories.create_category")
VIEW = RowAction("view", "View", "categories.view_category")
EDIT = RowAction("edit", "Edit", "categories.edit_category")
DELETE = RowAction("delete", "Delete", "categories.confirm_delete_category", style="danger")


def row_actions(permissions: Permission) -> List[RowAction]:
    """Actions shown on each row; ungranted ones are left out entirely."""

    actions: List[RowAction] = []
    if permissions.can_create_category:
        actions.append(ADD_CHILD)
    if permissions.can_view_category:
        actions.append(VIEW)
    if permissions.can_edit_category:
        actions.append(EDIT)
    if permissions.can_delete_category:
        actions.append(DELETE)
    return actions
