"""Client for the catalog REST API.

Every endpoint answers with an envelope of the form
``{"status": 200, "data": ..., "message": "..."}``.  An HTTP status other than 200 or
an envelope status other than 200 is treated as a failure and raised as
:class:`ApiError`, so callers only deal with one error type.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import httpx

from .constants import (
    API_AUTH_LOGIN,
    API_AUTH_LOGOUT,
    API_AUTH_ME,
    API_CATEGORY,
    API_CONTACT,
    API_MEDIA,
    API_PRODUCT,
    API_PRODUCT_IMAGE,
    API_PROFILE,
    DEFAULT_API_TIMEOUT,
)
from .models import Category, Contact, Media, Product, ProductImage, Profile

DEFAULT_ERROR_MESSAGE = "API request failed"


class ApiError(Exception):
    """A failed call to the REST API."""

    def __init__(self, status: int, message: str = DEFAULT_ERROR_MESSAGE) -> None:
        super().__init__(f"[{status}] {message}")
        self.status = status
        self.message = message

    @property
    def is_auth_error(self) -> bool:
        return self.status == 401

    @property
    def is_forbidden(self) -> bool:
        return self.status == 403

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def is_validation_error(self) -> bool:
        return self.status == 400


def _error_message(body: Any) -> str:
    if isinstance(body, Mapping):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
        nested = body.get("data")
        if isinstance(nested, Mapping):
            return _error_message(nested)
    return DEFAULT_ERROR_MESSAGE


def unwrap_response(response: httpx.Response) -> Any:
    """Return the ``data`` member of a successful envelope."""

    try:
        body = response.json()
    except ValueError:
        body = None

    if response.status_code != 200:
        status = response.status_code
        if isinstance(body, Mapping) and isinstance(body.get("status"), int):
            status = body["status"]
        raise ApiError(status, _error_message(body))

    if not isinstance(body, Mapping) or not isinstance(body.get("status"), int):
        raise ApiError(500, "Invalid API response format")
    if body["status"] != 200:
        raise ApiError(body["status"], _error_message(body))
    return body.get("data")


def _as_list(data: Any) -> List[Mapping[str, Any]]:
    return [item for item in data if isinstance(item, Mapping)] if isinstance(data, list) else []


def _as_record(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ApiError(500, "Invalid API response format")
    return data


class ApiClient:
    """Synchronous wrapper around :class:`httpx.Client` for the catalog API."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_API_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = self._client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as exc:
            raise ApiError(504, "The catalog service did not respond in time") from exc
        except httpx.HTTPError as exc:
            raise ApiError(503, "The catalog service is unavailable") from exc
        return unwrap_response(response)

    # Auth -------------------------------------------------------------
    def login(self, username: str, password: str) -> Dict[str, Any]:
        data = _as_record(
            self.request("POST", API_AUTH_LOGIN, json={"username": username, "password": password})
        )
        if not data.get("token") or not isinstance(data.get("user"), Mapping):
            raise ApiError(500, "Invalid API response format")
        return {"token": str(data["token"]), "user": dict(data["user"])}

    def logout(self) -> None:
        self.request("POST", API_AUTH_LOGOUT)

    def current_user(self) -> Dict[str, Any]:
        return dict(_as_record(self.request("GET", API_AUTH_ME)))

    # Categories -------------------------------------------------------
    def list_categories(self) -> List[Category]:
        return [Category.from_dict(item) for item in _as_list(self.request("GET", API_CATEGORY))]

    def get_category(self, category_id: str) -> Category:
        return Category.from_dict(_as_record(self.request("GET", f"{API_CATEGORY}/{category_id}")))

    def create_category(self, payload: Mapping[str, Any]) -> Category:
        return Category.from_dict(_as_record(self.request("POST", API_CATEGORY, json=dict(payload))))

    def update_category(self, category_id: str, payload: Mapping[str, Any]) -> Category:
        return Category.from_dict(
            _as_record(self.request("PUT", f"{API_CATEGORY}/{category_id}", json=dict(payload)))
        )

    def delete_category(self, category_id: str, cascade: bool = False) -> None:
        self.request(
            "DELETE",
            f"{API_CATEGORY}/{category_id}",
            params={"cascade": "true" if cascade else "false"},
        )

    # Products ---------------------------------------------------------
    def list_products(self) -> List[Product]:
        return [Product.from_dict(item) for item in _as_list(self.request("GET", API_PRODUCT))]

    def get_product(self, product_id: str) -> Product:
        return Product.from_dict(_as_record(self.request("GET", f"{API_PRODUCT}/{product_id}")))

    def create_product(self, payload: Mapping[str, Any]) -> Product:
        return Product.from_dict(_as_record(self.request("POST", API_PRODUCT, json=dict(payload))))

    def update_product(self, product_id: str, payload: Mapping[str, Any]) -> Product:
        return Product.from_dict(
            _as_record(self.request("PUT", f"{API_PRODUCT}/{product_id}", json=dict(payload)))
        )

    def delete_product(self, product_id: str) -> None:
        self.request("DELETE", f"{API_PRODUCT}/{product_id}")

    def add_product_image(self, product_id: str, image_url: str, sort_order: int = 0) -> ProductImage:
        payload = {"product_id": product_id, "image_url": image_url, "sort_order": sort_order}
        return ProductImage.from_dict(_as_record(self.request("POST", API_PRODUCT_IMAGE, json=payload)))

    def remove_product_image(self, image_id: str) -> None:
        self.request("DELETE", f"{API_PRODUCT_IMAGE}/{image_id}")

    # Contacts ---------------------------------------------------------
    def list_contacts(self) -> List[Contact]:
        return [Contact.from_dict(item) for item in _as_list(self.request("GET", API_CONTACT))]

    def get_contact(self, contact_id: str) -> Contact:
        return Contact.from_dict(_as_record(self.request("GET", f"{API_CONTACT}/{contact_id}")))

    def update_contact(self, contact_id: str, payload: Mapping[str, Any]) -> Contact:
        return Contact.from_dict(
            _as_record(self.request("PUT", f"{API_CONTACT}/{contact_id}", json=dict(payload)))
        )

    def delete_contact(self, contact_id: str) -> None:
        self.request("DELETE", f"{API_CONTACT}/{contact_id}")

    # Profile and media ------------------------------------------------
    def get_profile(self) -> Profile:
        return Profile.from_dict(_as_record(self.request("GET", API_PROFILE)))

    def update_profile(self, payload: Mapping[str, Any]) -> Profile:
        return Profile.from_dict(_as_record(self.request("PUT", API_PROFILE, json=dict(payload))))

    def create_media(self, payload: Mapping[str, Any]) -> Media:
        return Media.from_dict(_as_record(self.request("POST", API_MEDIA, json=dict(payload))))
