"""Records exchanged with the catalog REST API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

from flask_login import UserMixin

from .utils.rbac import Role


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


@dataclass
class Category:
    id: str
    name: str
    slug: str = ""
    description: Optional[str] = None
    parent_id: Optional[str] = None
    sort_order: int = 0
    level: int = 0
    is_active: bool = True
    media_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Category":
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name") or ""),
            slug=str(payload.get("slug") or ""),
            description=_optional_str(payload.get("description")),
            parent_id=_optional_str(payload.get("parent_id")),
            sort_order=_as_int(payload.get("sort_order")),
            level=_as_int(payload.get("level")),
            is_active=bool(payload.get("is_active", True)),
            media_id=_optional_str(payload.get("media_id")),
            created_at=_parse_datetime(payload.get("created_at")),
            updated_at=_parse_datetime(payload.get("updated_at")),
        )


@dataclass
class ProductImage:
    id: str
    product_id: str
    image_url: str
    sort_order: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ProductImage":
        return cls(
            id=str(payload["id"]),
            product_id=str(payload.get("product_id") or ""),
            image_url=str(payload.get("image_url") or ""),
            sort_order=_as_int(payload.get("sort_order")),
            created_at=_parse_datetime(payload.get("created_at")),
        )


@dataclass
class Product:
    id: str
    name: str
    price: Optional[Decimal] = None
    short_description: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    images: List[ProductImage] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Product":
        images = [ProductImage.from_dict(item) for item in payload.get("images") or []]
        images.sort(key=lambda image: image.sort_order)
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name") or ""),
            price=_as_decimal(payload.get("price")),
            short_description=_optional_str(payload.get("short_description")),
            description=_optional_str(payload.get("description")),
            is_active=bool(payload.get("is_active", True)),
            images=images,
            created_at=_parse_datetime(payload.get("created_at")),
            updated_at=_parse_datetime(payload.get("updated_at")),
        )

    @property
    def cover_image(self) -> Optional[ProductImage]:
        return self.images[0] if self.images else None


@dataclass
class Contact:
    id: str
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    message: Optional[str] = None
    status: str = "new"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Contact":
        return cls(
            id=str(payload["id"]),
            name=_optional_str(payload.get("name")),
            phone=_optional_str(payload.get("phone")),
            address=_optional_str(payload.get("address")),
            message=_optional_str(payload.get("message")),
            status=str(payload.get("status") or "new"),
            created_at=_parse_datetime(payload.get("created_at")),
            updated_at=_parse_datetime(payload.get("updated_at")),
        )

    @property
    def is_new(self) -> bool:
        return self.status == "new"


@dataclass
class Profile:
    id: str
    company_name: str
    username: str = ""
    phone: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    logo: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Profile":
        return cls(
            id=str(payload["id"]),
            company_name=str(payload.get("company_name") or ""),
            username=str(payload.get("username") or ""),
            phone=_optional_str(payload.get("phone")),
            address=_optional_str(payload.get("address")),
            email=_optional_str(payload.get("email")),
            logo=_optional_str(payload.get("logo")),
            is_active=bool(payload.get("is_active", True)),
        )


@dataclass
class Media:
    id: str
    file_name: str
    file_url: str
    media_type: str = "image"
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    alt_text: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Media":
        file_size = payload.get("file_size")
        return cls(
            id=str(payload["id"]),
            file_name=str(payload.get("file_name") or ""),
            file_url=str(payload.get("file_url") or ""),
            media_type=str(payload.get("media_type") or "image"),
            mime_type=_optional_str(payload.get("mime_type")),
            file_size=_as_int(file_size) if file_size is not None else None,
            alt_text=_optional_str(payload.get("alt_text")),
            sort_order=_as_int(payload.get("sort_order")),
            is_active=bool(payload.get("is_active", True)),
        )


class AdminUser(UserMixin):
    """The signed-in operator, rebuilt from the session on every request."""

    def __init__(
        self,
        id: str,
        username: str,
        role: Role,
        email: Optional[str] = None,
        company_name: Optional[str] = None,
    ) -> None:
        self.id = id
        self.username = username
        self.role = role
        self.email = email
        self.company_name = company_name

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AdminUser":
        """Build a user from the backend payload.

        Raises :class:`ValueError` when the payload names a role the console
        does not know about.
        """

        return cls(
            id=str(payload["id"]),
            username=str(payload.get("username") or ""),
            role=Role(payload.get("role")),
            email=_optional_str(payload.get("email")),
            company_name=_optional_str(payload.get("company_name")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role.value,
            "email": self.email,
            "company_name": self.company_name,
        }
