"""Image upload plumbing shared by the category and product forms."""

from __future__ import annotations

from typing import Optional

from werkzeug.datastructures import FileStorage

from ..extensions import media_storage
from ..storage import StorageError

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


def has_upload(file: Optional[FileStorage]) -> bool:
    return file is not None and bool(file.filename)


def upload_image(file: FileStorage, folder: str) -> str:
    """Store ``file`` under ``folder`` and return the bucket-relative path.

    Raises :class:`StorageError` if storage is not configured, the file is
    not an image or the upload fails.
    """

    client = media_storage.client
    if client is None:
        raise StorageError("Image storage is not configured")
    content_type = (file.mimetype or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise StorageError("Only JPEG, PNG, GIF or WebP images can be uploaded")
    content = file.read()
    if not content:
        raise StorageError("The uploaded file is empty")
    return client.upload(folder, file.filename or "image", content, content_type=content_type)
