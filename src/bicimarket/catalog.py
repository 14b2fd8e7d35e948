"""Category helpers and the cached category list."""

from __future__ import annotations

import logging

from .backend import BackendError
from .backend.client import BackendClient
from .backend.query import QuerySpec
from .config import settings
from .schemas import Category

logger = logging.getLogger(__name__)

OTHER_VALUES = frozenset({"otro", "other"})


def is_bike_category(category_id: int | None) -> bool:
    return bool(category_id) and category_id == settings.bike_category_id


def accepts_components(category_id: int | None) -> bool:
    """Components are recorded for bicycles and for the component category."""
    return is_bike_category(category_id) or (
        bool(category_id) and category_id == settings.component_category_id
    )


def is_other(value: str | None) -> bool:
    """True for the "Otro"/"Other" sentinel meaning "not in the catalog"."""
    return bool(value) and value.strip().lower() in OTHER_VALUES


class CategoryCache:
    """Categories are static reference data: fetched once, then served from memory."""

    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend
        self._categories: list[Category] | None = None

    @property
    def loaded(self) -> list[Category]:
        return self._categories or []

    async def all(self) -> list[Category]:
        if self._categories is not None:
            return self._categories
        try:
            rows = await self.backend.select(QuerySpec("categories").order("id"))
        except BackendError as e:
            # Not cached, the next call retries
            logger.warning("Failed to load categories: %s", e)
            return []
        self._categories = [Category(**r) for r in rows]
        logger.info("Loaded %d categories", len(self._categories))
        return self._categories

    async def name_of(self, category_id: int | None) -> str | None:
        for c in await self.all():
            if c.id == category_id:
                return c.name
        return None
