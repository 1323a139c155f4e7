"""Parent category picker used by the category create and edit forms."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set

from flask import current_app

from ..api import ApiClient, ApiError
from ..models import Category
from .category_tree import build_category_tree, find_node, get_descendant_keys, iter_nodes


class ParentSelectionError(ValueError):
    """Raised when a submitted parent id may not be chosen."""


@dataclass(frozen=True)
class ParentOption:
    value: str
    name: str
    depth: int
    disabled: bool
    is_leaf: bool

    @property
    def label(self) -> str:
        prefix = "└ " if self.depth > 0 else ""
        return f"{'  ' * self.depth}{prefix}{self.name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "label": self.label,
            "depth": self.depth,
            "disabled": self.disabled,
            "is_leaf": self.is_leaf,
        }


@dataclass
class ParentSelector:
    options: List[ParentOption] = field(default_factory=list)
    disabled_ids: Set[str] = field(default_factory=set)
    error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.options

    def search(self, term: Optional[str]) -> List[ParentOption]:
        """Options whose name contains ``term``, ignoring case."""

        needle = (term or "").strip().lower()
        if not needle:
            return list(self.options)
        return [option for option in self.options if needle in option.name.lower()]

    def resolve(self, raw_value: Optional[str]) -> Optional[str]:
        """Turn a submitted form value into a parent id.

        A blank value clears the parent and is always accepted.
        """

        value = (raw_value or "").strip()
        if not value:
            return None
        if value in self.disabled_ids:
            raise ParentSelectionError("A category cannot be moved under itself or one of its children.")
        if not any(option.value == value for option in self.options):
            raise ParentSelectionError("The selected parent category does not exist.")
        return value


def build_parent_selector(
    categories: Sequence[Category], exclude_id: Optional[str] = None
) -> ParentSelector:
    """Build the selectable parent options.

    When ``exclude_id`` is given, that category and all of its descendants
    stay visible but are disabled.
    """

    tree = build_category_tree(categories)
    disabled: Set[str] = set()
    if exclude_id:
        excluded = find_node(tree, str(exclude_id))
        if excluded is not None:
            disabled = {excluded.key} | get_descendant_keys(excluded)

    options = [
        ParentOption(
            value=node.key,
            name=node.data.name,
            depth=depth,
            disabled=node.key in disabled,
            is_leaf=not node.children,
        )
        for node, depth in iter_nodes(tree)
    ]
    return ParentSelector(options=options, disabled_ids=disabled)


def load_parent_selector(client: ApiClient, exclude_id: Optional[str] = None) -> ParentSelector:
    """Fetch categories and build the selector; a failed fetch gives no options."""

    try:
        categories = client.list_categories()
    except ApiError as exc:
        current_app.logger.warning("Could not load parent categories: %s", exc.message)
        return ParentSelector(error=exc.message)
    return build_parent_selector(categories, exclude_id)
