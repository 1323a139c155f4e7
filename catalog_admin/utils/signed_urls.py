"""Cache of signed image URLs handed out by the storage service."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)

Signer = Callable[[str, int], str]
Clock = Callable[[], float]


class SignedUrlCache:
    """Keeps signed URLs until shortly before they expire.

    Entries are refreshed ``refresh_margin`` seconds before expiry and the
    least recently used entry is dropped once ``max_entries`` is reached.
    """

    def __init__(
        self,
        signer: Optional[Signer],
        expires_in: int = 3600,
        refresh_margin: int = 300,
        max_entries: int = 512,
        clock: Clock = time.time,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._signer = signer
        self.expires_in = expires_in
        self.refresh_margin = refresh_margin
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[str, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, image_url: Optional[str]) -> str:
        """Return a browser-usable URL for ``image_url`` or ``""``."""

        if not image_url:
            return ""
        if image_url.startswith(("http://", "https://")):
            return image_url

        now = self._clock()
        with self._lock:
            cached = self._entries.get(image_url)
            if cached and cached[1] > now + self.refresh_margin:
                self._entries.move_to_end(image_url)
                return cached[0]

        if self._signer is None:
            return ""
        try:
            signed = self._signer(image_url, self.expires_in)
        except Exception:  # noqa: BLE001 - a broken image must not break the page
            logger.exception("Error creating signed URL for %s", image_url)
            return ""
        if not signed:
            return ""

        with self._lock:
            self._entries[image_url] = (signed, now + self.expires_in)
            self._entries.move_to_end(image_url)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return signed

    def invalidate(self, image_url: str) -> None:
        with self._lock:
            self._entries.pop(image_url, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
