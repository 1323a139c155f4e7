"""Client for the object storage service that holds catalog images.

The service speaks the Supabase storage REST dialect.  Paths are stored in
the catalog relative to the bucket, e.g. ``product/1700000000_mug.jpg``.
"""

from __future__ import annotations

import time
from typing import Any, Optional
from urllib.parse import quote

import httpx
from werkzeug.utils import secure_filename


class StorageError(Exception):
    """Raised when the storage service rejects a request."""


def normalize_path(path: str) -> str:
    return path[1:] if path.startswith("/") else path


class StorageClient:
    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self._client = httpx.Client(
            base_url=f"{self.base_url}/storage/v1",
            headers={"Authorization": f"Bearer {service_key}", "apikey": service_key},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage service unavailable: {exc}") from exc
        if response.status_code >= 400:
            try:
                detail = response.json().get("message") or response.text
            except (ValueError, AttributeError):
                detail = response.text
            raise StorageError(f"Storage request failed ({response.status_code}): {detail}")
        try:
            return response.json()
        except ValueError:
            return None

    def create_signed_url(self, path: str, expires_in: int) -> str:
        clean = quote(normalize_path(path))
        body = self._send("POST", f"/object/sign/{self.bucket}/{clean}", json={"expiresIn": expires_in})
        signed = (body or {}).get("signedURL") or (body or {}).get("signedUrl")
        if not signed:
            raise StorageError("Storage service returned no signed URL")
        if signed.startswith(("http://", "https://")):
            return signed
        return f"{self.base_url}/storage/v1{signed}"

    def upload(
        self,
        folder: str,
        filename: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> str:
        """Upload ``content`` and return its path relative to the bucket."""

        if not folder:
            raise StorageError("Folder is required")
        safe_name = secure_filename(filename) or "upload"
        path = f"{folder}/{int(time.time() * 1000)}_{safe_name}"
        self._send(
            "POST",
            f"/object/{self.bucket}/{quote(path)}",
            content=content,
            headers={
                "Content-Type": content_type,
                "Cache-Control": "3600",
                "x-upsert": "true" if upsert else "false",
            },
        )
        return path

    def remove(self, path: str) -> None:
        if not path:
            raise StorageError("Path is required")
        self._send("DELETE", f"/object/{self.bucket}", json={"prefixes": [normalize_path(path)]})
