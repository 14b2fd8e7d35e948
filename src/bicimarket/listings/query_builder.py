"""Turn a FilterSet into a single listings query."""

from __future__ import annotations

from ..backend.query import IN, Filter, QuerySpec
from ..config import settings
from .filters import FilterSet

_EQUALITY_FILTERS = ("category_id", "bike_type", "condition", "frame_size", "wheel_size")


def build_listing_query(filters: FilterSet, limit: int | None = None) -> QuerySpec:
    """Build the browse query for ``filters``.

    Scalar filters are ANDed as equalities, the price bounds are inclusive, and
    brand/model names (free text, not ids) are combined into one OR group of
    membership tests.  Pure: equal FilterSets give equal specs.
    """
    spec = QuerySpec("listings")

    for name in _EQUALITY_FILTERS:
        value = getattr(filters, name)
        if value is not None:
            spec = spec.eq(name, value)

    if filters.price_min is not None:
        spec = spec.gte("price", filters.price_min)
    if filters.price_max is not None:
        spec = spec.lte("price", filters.price_max)

    name_filters = []
    if filters.brands:
        name_filters.append(Filter("brand", IN, tuple(filters.brands)))
    if filters.models:
        name_filters.append(Filter("model", IN, tuple(filters.models)))
    spec = spec.any_of(*name_filters)

    return spec.order("created_at", descending=True).limit(limit or settings.listings_limit)
