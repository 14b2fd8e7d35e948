"""Execute listing reads against the backend."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pydantic import ValidationError

from ..backend import BackendError
from ..backend.client import BackendClient
from ..backend.query import QuerySpec
from ..schemas import Listing
from .filters import FilterSet
from .query_builder import build_listing_query

logger = logging.getLogger(__name__)


@dataclass
class BrowseResult:
    listings: list[Listing] = field(default_factory=list)
    error: str | None = None


def _parse(rows: list[dict]) -> list[Listing]:
    out: list[Listing] = []
    for r in rows:
        try:
            out.append(Listing(**r))
        except ValidationError as e:
            logger.warning("Skipping malformed listing %s: %s", r.get("id"), e)
    return out


class ListingBrowser:
    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend

    async def browse(self, filters: FilterSet) -> BrowseResult:
        """Run the browse query; a backend failure yields an empty result carrying the error."""
        spec = build_listing_query(filters)
        try:
            rows = await self.backend.select(spec)
        except BackendError as e:
            logger.warning("Listing query failed: %s", e)
            return BrowseResult(error=str(e))
        return BrowseResult(listings=_parse(rows))

    async def get(self, listing_id: str) -> Listing | None:
        row = await self.backend.select_one(QuerySpec("listings").eq("id", listing_id))
        return Listing(**row) if row else None

    async def owned_by(self, user_id: str) -> list[Listing]:
        spec = QuerySpec("listings").eq("user_id", user_id).order("created_at", descending=True)
        return _parse(await self.backend.select(spec))
