"""Delete-time checks for categories that still have children."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..api import ApiClient
from ..models import Category


@dataclass(frozen=True)
class DeletePreview:
    has_children: bool
    child_count: int


def prepare_delete(category: Category, all_categories: Sequence[Category]) -> DeletePreview:
    """Count the direct children of ``category``.

    Grandchildren are not counted even though a cascading delete on the
    backend removes them as well.
    """

    child_count = sum(1 for item in all_categories if item.parent_id == category.id)
    return DeletePreview(has_children=child_count > 0, child_count=child_count)


def confirm_delete(client: ApiClient, category: Category, cascade: bool) -> None:
    """Issue the delete; raises :class:`~catalog_admin.api.ApiError` on failure."""

    client.delete_category(category.id, cascade=cascade)
