"""Helpers for working with category hierarchies."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Dict, Generic, Iterable, Iterator, List, Optional, Sequence, Set, TypeVar

from ..models import Category

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(eq=False)
class TreeNode(Generic[T]):
    """A record placed in a forest.

    ``parent`` only points upwards for path lookups; the forest owns nodes
    through ``children``.
    """

    key: str
    data: T
    children: List["TreeNode[T]"] = field(default_factory=list)
    parent: Optional["TreeNode[T]"] = field(default=None, repr=False)

    @property
    def has_children(self) -> bool:
        return bool(self.children)


def build_tree(
    items: Sequence[T],
    *,
    id_attr: str = "id",
    parent_attr: str = "parent_id",
    sort_by: Optional[str] = None,
) -> List[TreeNode[T]]:
    """Build a forest from a flat list of records.

    Records whose parent does not resolve inside ``items`` become roots.
    For each parent cycle one member is promoted to a root, so every record
    shows up exactly once and records below the cycle keep their parents.
    """

    nodes: Dict[str, TreeNode[T]] = {}
    for item in items:
        key = str(getattr(item, id_attr))
        nodes[key] = TreeNode(key=key, data=item)

    roots: List[TreeNode[T]] = []
    for item in items:
        node = nodes[str(getattr(item, id_attr))]
        parent_id = getattr(item, parent_attr, None)
        parent = nodes.get(str(parent_id)) if parent_id else None
        if parent is not None:
            parent.children.append(node)
            node.parent = parent
        else:
            roots.append(node)

    _promote_unreachable(nodes, roots)

    if sort_by:
        _sort_nodes(roots, attrgetter(sort_by))
    return roots


def build_category_tree(
    categories: Sequence[Category], sort_by: Optional[str] = "sort_order"
) -> List[TreeNode[Category]]:
    return build_tree(categories, sort_by=sort_by)


def _promote_unreachable(nodes: Dict[str, TreeNode[Any]], roots: List[TreeNode[Any]]) -> None:
    reachable: Set[str] = set()
    for root in roots:
        _mark_reachable(root, reachable)
    if len(reachable) == len(nodes):
        return

    for key, node in nodes.items():
        if key in reachable:
            continue
        # Only the cycle itself is broken; records hanging below it keep their parents.
        entry = _cycle_entry(node)
        logger.warning(
            "Category %s has a circular parent chain; showing it as a root", entry.key
        )
        entry.parent.children.remove(entry)
        entry.parent = None
        roots.append(entry)
        _mark_reachable(entry, reachable)


def _cycle_entry(node: TreeNode[Any]) -> TreeNode[Any]:
    """First node met twice when walking up from ``node``.

    Only called for unreachable nodes, whose parent chain always loops.
    """

    seen: Set[str] = set()
    current = node
    while current.key not in seen:
        seen.add(current.key)
        current = current.parent
    return current


def _mark_reachable(node: TreeNode[Any], reachable: Set[str]) -> None:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.key in reachable:
            continue
        reachable.add(current.key)
        stack.extend(current.children)


def _sort_nodes(nodes: List[TreeNode[Any]], key_fn) -> None:
    """Recursively sort every level; ``list.sort`` keeps ties in input order."""

    nodes.sort(key=lambda node: key_fn(node.data))
    for node in nodes:
        _sort_nodes(node.children, key_fn)


def flatten_tree(nodes: Iterable[TreeNode[T]]) -> List[T]:
    """Return the records of the forest in pre-order."""

    result: List[T] = []
    for node in nodes:
        result.append(node.data)
        result.extend(flatten_tree(node.children))
    return result


def iter_nodes(nodes: Iterable[TreeNode[T]], depth: int = 0) -> Iterator[tuple]:
    """Yield ``(node, depth)`` pairs in pre-order."""

    for node in nodes:
        yield node, depth
        yield from iter_nodes(node.children, depth + 1)


def get_descendants(node: TreeNode[T]) -> List[TreeNode[T]]:
    """Return every node below ``node`` in pre-order, excluding ``node``."""

    descendants: List[TreeNode[T]] = []
    for child in node.children:
        descendants.append(child)
        descendants.extend(get_descendants(child))
    return descendants


def get_descendant_keys(node: TreeNode[Any]) -> Set[str]:
    return {descendant.key for descendant in get_descendants(node)}


def find_node(nodes: Iterable[TreeNode[T]], key: str) -> Optional[TreeNode[T]]:
    for node in nodes:
        if node.key == key:
            return node
        found = find_node(node.children, key)
        if found is not None:
            return found
    return None


def get_node_path(node: TreeNode[T]) -> List[TreeNode[T]]:
    """Return the nodes from the root down to ``node``."""

    path: List[TreeNode[T]] = []
    current: Optional[TreeNode[T]] = node
    while current is not None:
        path.append(current)
        current = current.parent
    path.reverse()
    return path


def find_orphan_keys(categories: Sequence[Category]) -> List[str]:
    """Ids of records whose ``parent_id`` names a record that is not present."""

    known = {category.id for category in categories}
    return [
        category.id
        for category in categories
        if category.parent_id and category.parent_id not in known
    ]


def find_cyclic_keys(categories: Sequence[Category]) -> List[str]:
    """Ids of records whose parent chain never reaches a root."""

    parents = {category.id: category.parent_id for category in categories}
    verdicts: Dict[str, bool] = {}

    for category in categories:
        chain: List[str] = []
        seen: Set[str] = set()
        current: Optional[str] = category.id
        cyclic = False
        while current is not None and current in parents:
            if current in verdicts:
                cyclic = verdicts[current]
                break
            if current in seen:
                cyclic = True
                break
            seen.add(current)
            chain.append(current)
            current = parents[current]
        for key in chain:
            verdicts[key] = cyclic

    return [category.id for category in categories if verdicts.get(category.id)]


def find_level_mismatches(categories: Sequence[Category]) -> List[Category]:
    """Records whose stored ``level`` disagrees with their place in the tree."""

    mismatched: List[Category] = []
    for node, depth in iter_nodes(build_category_tree(categories, sort_by=None)):
        if node.data.level != depth:
            mismatched.append(node.data)
    return mismatched


def format_category_outline(nodes: Sequence[TreeNode[Category]], depth: int = 0) -> List[str]:
    lines: List[str] = []
    for node in nodes:
        category = node.data
        suffix = "" if category.is_active else " (inactive)"
        lines.append(f"{'  ' * depth}{category.name} [{category.slug}]{suffix}")
        lines.extend(format_category_outline(node.children, depth + 1))
    return lines
