"""Listing submission pipeline: validate, upload images, sanitize, resolve ids, insert."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

from ..backend import BackendError
from ..backend.client import BackendClient
from ..backend.query import QuerySpec
from ..catalog import is_other
from ..config import settings
from ..sanitize import sanitize_long, sanitize_number, sanitize_short, sanitize_text
from ..schemas import AuthUser, Listing
from ..storage import object_path
from . import ImageUploadError, ListingPersistError, PublishValidationError
from .form import LOCATION_MAX, TITLE_MAX, PublishForm

logger = logging.getLogger(__name__)


@dataclass
class ImageUpload:
    filename: str
    data: bytes
    content_type: str = "application/octet-stream"


def check_images(images: list[ImageUpload]) -> list[str]:
    problems: list[str] = []
    if len(images) > settings.max_images:
        problems.append(f"at most {settings.max_images} images are allowed")
    for img in images:
        if not img.content_type.startswith("image/"):
            problems.append(f"{img.filename} is not an image")
        elif not img.data:
            problems.append(f"{img.filename} is empty")
    return problems


def build_record(
    form: PublishForm,
    user: AuthUser,
    image_paths: list[str],
    brand_id: int | None = None,
    model_id: int | None = None,
) -> dict[str, Any]:
    """Sanitized row for the ``listings`` collection.

    Bike attributes are only set for the bicycle category, components only for
    categories that take them.
    """
    price = sanitize_number(form.price, settings.price_min, settings.price_max)
    if price is not None and price.is_integer():
        price = int(price)

    record: dict[str, Any] = {
        "user_id": user.id,
        "title": sanitize_text(form.title, TITLE_MAX),
        "condition": form.condition,
        "price": price,
        "location": sanitize_text(form.location, LOCATION_MAX),
        "images": image_paths,
    }
    description = sanitize_long(form.description)
    if description:
        record["description"] = description
    if form.category_id:
        record["category_id"] = form.category_id

    brand = sanitize_short(form.brand)
    if brand:
        record["brand"] = brand
    if brand_id:
        record["brand_id"] = brand_id
    model = sanitize_short(form.model)
    if model:
        record["model"] = model
    if model_id:
        record["model_id"] = model_id

    if form.is_bike:
        for name in ("bike_type", "frame_size", "wheel_size"):
            value = sanitize_short(getattr(form, name))
            if value:
                record[name] = value

    if form.takes_components:
        components = [c for c in (sanitize_short(c) for c in form.components) if c]
        if components:
            record["components"] = components
    return record


class PublishOrchestrator:
    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend

    async def submit(self, form: PublishForm, images: list[ImageUpload], user: AuthUser) -> Listing:
        """Publish ``form`` for ``user``.

        Raises a ``PublishError`` subclass on failure, leaving ``form`` untouched;
        resets ``form`` on success.
        """
        problems = form.validate() + check_images(images)
        if problems:
            raise PublishValidationError(problems)

        paths = await self._upload_all(images)

        brand_id = await self._resolve_brand_id(form)
        model_id = await self._resolve_model_id(form, brand_id)
        record = build_record(form, user, paths, brand_id=brand_id, model_id=model_id)

        try:
            row = await self.backend.insert("listings", record)
        except BackendError as e:
            logger.warning("Listing insert failed: %s", e)
            await self._discard(paths)
            raise ListingPersistError(str(e)) from e

        listing = Listing(**row)
        logger.info("Published listing %s with %d image(s)", listing.id, len(paths))
        form.reset()
        return listing

    async def _upload_all(self, images: list[ImageUpload]) -> list[str]:
        """Upload every image concurrently; all must succeed."""
        if not images:
            return []
        stamp = int(time.time() * 1000)
        paths = [object_path(img.filename, i, stamp) for i, img in enumerate(images)]
        results = await asyncio.gather(
            *(self.backend.upload(p, img.data, img.content_type) for p, img in zip(paths, images)),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, Exception)]
        if failures:
            uploaded = [p for p, r in zip(paths, results) if not isinstance(r, Exception)]
            logger.warning("%d of %d image uploads failed: %s", len(failures), len(images), failures[0])
            await self._discard(uploaded)
            raise ImageUploadError(f"Image upload failed: {failures[0]}") from failures[0]
        return list(results)

    async def _discard(self, paths: list[str]) -> None:
        if not paths:
            return
        try:
            await self.backend.remove(paths)
        except BackendError as e:
            logger.warning("Could not remove %d orphaned image(s): %s", len(paths), e)

    async def _resolve_brand_id(self, form: PublishForm) -> int | None:
        brand = form.brand.strip()
        if not brand or is_other(brand):
            return None
        if form.brand_id:
            return form.brand_id
        spec = QuerySpec("brands", "id,name").eq("name", brand)
        return await self._lookup_id(spec, "brand", brand)

    async def _resolve_model_id(self, form: PublishForm, brand_id: int | None) -> int | None:
        model = form.model.strip()
        if not model or is_other(model):
            return None
        if form.model_id:
            return form.model_id
        spec = QuerySpec("models", "id,name,brand_id").eq("name", model)
        if brand_id:
            spec = spec.eq("brand_id", brand_id)
        return await self._lookup_id(spec, "model", model)

    async def _lookup_id(self, spec: QuerySpec, kind: str, name: str) -> int | None:
        """Exact-name catalog lookup; free text is kept as-is when nothing matches."""
        try:
            row = await self.backend.select_one(spec)
        except BackendError as e:
            logger.warning("Could not resolve %s %r, keeping free text: %s", kind, name, e)
            return None
        return row["id"] if row else None
