"""Object store for design blobs and payment screenshots.

A thin wrapper over Django's ``Storage`` API so the backend (local disk,
in-memory for tests, or a cloud bucket via ``STORAGES["default"]``) stays a
settings concern.
"""

import logging
from urllib.parse import unquote, urlsplit

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

logger = logging.getLogger("printworks.designs")


class ObjectStore:
    def __init__(self, storage=None):
        self.storage = storage or default_storage

    def put(self, path: str, data: bytes, *, public: bool = True) -> str:
        """Store ``data`` under ``path`` and return its durable URL.

        Objects are always readable by URL; ``public`` is kept for backends
        that support per-object ACLs.
        """
        name = self.storage.save(path, ContentFile(data))
        return self.storage.url(name)

    def owns(self, url: str) -> bool:
        return self.name_for(url) is not None

    def name_for(self, url: str) -> str | None:
        """Map a URL issued by :meth:`put` back to its storage name.

        Returns None for URLs that point somewhere else.
        """
        if not url:
            return None
        base = getattr(self.storage, "base_url", None) or ""
        if base and url.startswith(base):
            return unquote(url[len(base) :]) or None
        # Relative base URLs ("/media/") against absolute object URLs
        if base.startswith("/"):
            path = urlsplit(url).path
            if path.startswith(base):
                return unquote(path[len(base) :]) or None
        return None

    def delete(self, url: str) -> bool:
        """Delete the object behind ``url``.

        Idempotent: unknown or already-deleted objects are not an error.
        Returns True when an object was removed.
        """
        name = self.name_for(url)
        if name is None:
            return False
        try:
            if not self.storage.exists(name):
                return False
            self.storage.delete(name)
        except FileNotFoundError:
            return False
        logger.debug("blob.deleted", extra={"event": "blob.deleted", "blob": name})
        return True


def get_object_store() -> ObjectStore:
    return ObjectStore()
