"""Slug generation and validation."""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable

SLUG_PATTERN = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")

# Letters that do not decompose into a base letter plus combining marks.
_SPECIAL_LETTERS = str.maketrans({"đ": "d", "Đ": "D", "ß": "ss", "ø": "o", "Ø": "O", "ł": "l", "Ł": "L"})


def generate_slug(text: str) -> str:
    """Return a URL-safe slug for ``text``.

    Accents are folded to their base letters, so ``"Điện Tử Máy Tính"``
    becomes ``"dien-tu-may-tinh"``.
    """

    if not text:
        return ""
    folded = unicodedata.normalize("NFKD", text.translate(_SPECIAL_LETTERS))
    ascii_text = "".join(ch for ch in folded if not unicodedata.combining(ch))
    slug = ascii_text.lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"[\s-]+", "-", slug)
    return slug.strip("-")


def is_valid_slug(slug: str) -> bool:
    if not slug:
        return False
    return SLUG_PATTERN.fullmatch(slug) is not None


def ensure_unique_slug(base_slug: str, existing_slugs: Iterable[str]) -> str:
    """Append ``-1``, ``-2``... until the slug is not taken."""

    taken = set(existing_slugs)
    slug = base_slug
    counter = 1
    while slug in taken:
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


def generate_unique_slug(text: str, existing_slugs: Iterable[str] = ()) -> str:
    return ensure_unique_slug(generate_slug(text), existing_slugs)
