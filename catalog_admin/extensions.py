"""Application-wide Flask extensions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from flask import Flask, current_app, g, has_request_context, session
from flask_login import LoginManager

from .api import ApiClient
from .constants import SESSION_TOKEN_KEY
from .storage import StorageClient
from .utils.signed_urls import SignedUrlCache


class CatalogApi:
    """Hands out one :class:`ApiClient` per application context.

    The client carries the bearer token of the signed-in operator and is
    closed when the context tears down.
    """

    def init_app(self, app: Flask) -> None:
        app.extensions["catalog_api"] = self
        app.teardown_appcontext(self._close_client)

    @property
    def client(self) -> ApiClient:
        client = g.get("_catalog_api_client")
        if client is None:
            token = session.get(SESSION_TOKEN_KEY) if has_request_context() else None
            client = self.create_client(token or current_app.config.get("API_TOKEN"))
            g._catalog_api_client = client
        return client

    def create_client(self, token: Optional[str]) -> ApiClient:
        config = current_app.config
        return ApiClient(
            base_url=config["API_BASE_URL"],
            token=token,
            timeout=config["API_TIMEOUT"],
            transport=config.get("API_TRANSPORT"),
        )

    @staticmethod
    def _close_client(_: Any) -> None:
        client = g.pop("_catalog_api_client", None)
        if client is not None:
            client.close()


@dataclass
class _StorageState:
    client: Optional[StorageClient]
    signed_urls: SignedUrlCache


class MediaStorage:
    """Storage client plus the signed URL cache shared by all requests."""

    def init_app(self, app: Flask) -> None:
        config = app.config
        client: Optional[StorageClient] = None
        if config.get("STORAGE_URL") and config.get("STORAGE_SERVICE_KEY"):
            client = StorageClient(
                base_url=config["STORAGE_URL"],
                service_key=config["STORAGE_SERVICE_KEY"],
                bucket=config["STORAGE_BUCKET"],
                transport=config.get("STORAGE_TRANSPORT"),
            )
        else:
            app.logger.warning("Storage URL or service key is missing; image uploads are disabled.")
        app.extensions["media_storage"] = _StorageState(
            client=client,
            signed_urls=SignedUrlCache(
                signer=client.create_signed_url if client else None,
                expires_in=config["SIGNED_URL_TTL"],
                max_entries=config["SIGNED_URL_CACHE_SIZE"],
            ),
        )

    @property
    def _state(self) -> _StorageState:
        return current_app.extensions["media_storage"]

    @property
    def client(self) -> Optional[StorageClient]:
        return self._state.client

    @property
    def signed_urls(self) -> SignedUrlCache:
        return self._state.signed_urls

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def image_url(self, path: Optional[str]) -> str:
        return self.signed_urls.get(path)


catalog_api = CatalogApi()
media_storage = MediaStorage()
login_manager = LoginManager()
