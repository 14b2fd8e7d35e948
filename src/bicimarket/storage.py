"""Object storage paths and public URLs for listing images."""

from __future__ import annotations

import re
import time
from urllib.parse import quote

from .config import settings

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def public_url(path: str | None, base_url: str | None = None, bucket: str | None = None) -> str | None:
    """Return the publicly fetchable URL of a stored object, or None when there is no path."""
    if not path:
        return None
    base = (base_url or settings.backend_url).rstrip("/")
    return f"{base}/storage/v1/object/public/{bucket or settings.storage_bucket}/{quote(path)}"


def first_image_url(images: list[str] | None) -> str | None:
    return public_url(images[0]) if images else None


def object_path(filename: str, index: int = 0, now_ms: int | None = None) -> str:
    """Build a unique storage path for an uploaded image."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    name = _UNSAFE_NAME_RE.sub("-", filename or "image").strip("-") or "image"
    return f"bici-{stamp}-{index}-{name}"
