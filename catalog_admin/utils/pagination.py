"""Pagination of API lists, which arrive complete and are sliced locally."""
from __future__ import annotations

from dataclasses import dataclass
from math import ceil
from typing import Generic, List, Optional, Sequence, TypeVar

from flask import Request, request, session, url_for

PER_PAGE_OPTIONS: tuple[int, ...] = (10, 20, 50, 100)
DEFAULT_PER_PAGE: int = 10
SESSION_PER_PAGE_KEY = "list_per_page"

T = TypeVar("T")


@dataclass
class ListPagination(Generic[T]):
    """One page of an already fetched list."""

    items: List[T]
    page: int
    per_page: int
    total: int

    @property
    def pages(self) -> int:
        return max(ceil(self.total / self.per_page), 1)

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def links(self) -> List[Optional[int]]:
        """Page numbers to render, with ``None`` marking a gap.

        The first and last page are always present together with a window of
        three pages around the current one.
        """

        if self.pages == 1:
            return [1]
        start = max(min(self.page - 1, self.pages - 2), 1)
        shown = sorted({1, self.pages, *range(start, min(start + 2, self.pages) + 1)})

        links: List[Optional[int]] = []
        for number in shown:
            if links and number - links[-1] > 1:
                links.append(None)
            links.append(number)
        return links


def paginate_items(items: Sequence[T], page: int, per_page: int) -> ListPagination[T]:
    """Slice ``items`` into a page, clamping ``page`` to the last page."""

    pages = max(ceil(len(items) / per_page), 1)
    page = min(max(page, 1), pages)
    start = (page - 1) * per_page
    return ListPagination(items=list(items[start:start + per_page]), page=page, per_page=per_page, total=len(items))


def get_page_args(req: Request | None = None) -> tuple[int, int]:
    """Read ``page`` and ``per_page`` from the query string.

    An explicit ``per_page`` is remembered in the session for later lists;
    values outside :data:`PER_PAGE_OPTIONS` fall back to the default.
    """

    req = req or request
    page = max(req.args.get("page", 1, type=int), 1)
    requested = req.args.get("per_page", type=int)
    if requested is None:
        requested = session.get(SESSION_PER_PAGE_KEY, DEFAULT_PER_PAGE)
    per_page = requested if requested in PER_PAGE_OPTIONS else DEFAULT_PER_PAGE
    if "per_page" in req.args:
        session[SESSION_PER_PAGE_KEY] = per_page
    return page, per_page


def page_url(page: int, per_page: int | None = None) -> str:
    """URL of the current view at ``page``, keeping the other query args."""

    args = request.args.to_dict()
    args["page"] = page
    if per_page is not None:
        args["per_page"] = per_page
    return url_for(request.endpoint, **(request.view_args or {}), **args)
