"""Storage backends."""

from __future__ import annotations

from typing import Mapping

from .abstract_storage import AbstractStorage
from .local_storage import LocalStorage
from .object_storage import ObjectStorage

UPLOADS_URL_PREFIX = "/api/uploads/"


def display_url(reference: str | None) -> str | None:
    """Return the URL a client should use for a stored reference."""

    if not reference:
        return None
    if reference.startswith(("http://", "https://")):
        return reference
    return UPLOADS_URL_PREFIX + reference


def build_storage(config: Mapping) -> AbstractStorage:
    """Pick the object store when a bucket is configured, local disk otherwise."""

    bucket = config.get("OBJECT_STORAGE_BUCKET")
    if bucket:
        return ObjectStorage(
            bucket=bucket,
            public_base=config.get("OBJECT_STORAGE_PUBLIC_BASE") or "",
            endpoint=config.get("OBJECT_STORAGE_ENDPOINT"),
            region=config.get("OBJECT_STORAGE_REGION"),
            access_key=config.get("OBJECT_STORAGE_KEY"),
            secret_key=config.get("OBJECT_STORAGE_SECRET"),
        )
    return LocalStorage(config.get("UPLOAD_DIR"))


__all__ = [
    "AbstractStorage",
    "LocalStorage",
    "ObjectStorage",
    "build_storage",
    "display_url",
]
