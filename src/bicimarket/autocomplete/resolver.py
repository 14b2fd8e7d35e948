"""Resolve free-text input plus current selections into selectable options.

Resolution contract:

- no entity selected -> empty result, no backend call;
- the fetched catalog options are merged with every selected value, so a
  selection never disappears because the current query no longer matches it
  (unmatched values become freeform options);
- options are deduplicated by value (first wins) and sorted by label;
- with ``allow_other`` the "Otro" sentinel is present exactly once;
- a backend failure is logged and degrades to the selected values only.
"""

from __future__ import annotations

import logging
from typing import Any

from ..backend import BackendError
from ..backend.client import BackendClient
from ..backend.query import ILIKE, Filter, QuerySpec
from ..catalog import is_other
from ..config import settings
from ..schemas import (
    AutocompleteRequest,
    AutocompleteResult,
    EntitySelector,
    FreeformOption,
    KnownOption,
    Option,
)

logger = logging.getLogger(__name__)


def build_option_query(request: AutocompleteRequest, limit: int | None = None) -> QuerySpec | None:
    """Pick the collection and filters for an autocomplete request."""
    if request.entity is None:
        return None
    limit = limit or settings.autocomplete_limit
    fragment = request.query.strip()
    brand_names = request.filters.get("brand_name")

    if request.entity == EntitySelector.BRANDS:
        spec = QuerySpec("brands", "name")
        if fragment:
            spec = spec.ilike("name", fragment)

    elif request.entity == EntitySelector.MODELS:
        if isinstance(brand_names, list) and brand_names:
            # Filtering by brand *name* goes through the joined view
            spec = QuerySpec("models_with_brands", "model_name,brand_name").in_("brand_name", brand_names)
            if fragment:
                spec = spec.ilike("model_name", fragment)
        elif request.brand_id:
            spec = QuerySpec("models", "name").eq("brand_id", request.brand_id)
            if fragment:
                spec = spec.ilike("name", fragment)
        else:
            spec = QuerySpec("models", "name,brand_id")
            if fragment:
                spec = spec.ilike("name", fragment)

    else:
        spec = QuerySpec("models_with_brands", "*")
        for key, value in sorted(request.filters.items()):
            if isinstance(value, list):
                if value:
                    spec = spec.in_(key, value)
            elif value:
                spec = spec.eq(key, value)
        if fragment:
            spec = spec.any_of(
                Filter("model_name", ILIKE, fragment),
                Filter("brand_name", ILIKE, fragment),
            )

    return spec.limit(limit)


def rows_to_options(request: AutocompleteRequest, rows: list[dict[str, Any]]) -> list[Option]:
    options: list[Option] = []
    if request.entity == EntitySelector.BRANDS:
        for r in rows:
            if r.get("name"):
                options.append(KnownOption(value=r["name"], label=r["name"]))

    elif request.entity == EntitySelector.MODELS:
        brand_names = request.filters.get("brand_name")
        for r in rows:
            if isinstance(brand_names, list) and brand_names:
                # Joined view: model names only, not "brand - model"
                name = r.get("model_name")
                brand_id = None
            else:
                name = r.get("name")
                brand_id = request.brand_id or r.get("brand_id")
            if name:
                options.append(KnownOption(value=name, label=name, brand_id=brand_id))

    else:
        for r in rows:
            text = f"{r.get('brand_name')} - {r.get('model_name')}"
            options.append(KnownOption(value=text, label=text, brand_id=r.get("brand_id")))
    return options


def dedupe(options: list[Option]) -> list[Option]:
    seen: set[str] = set()
    out: list[Option] = []
    for o in options:
        if o.value not in seen:
            seen.add(o.value)
            out.append(o)
    return out


def with_other(options: list[Option], label: str | None = None) -> list[Option]:
    """Add the "Otro" sentinel unless an equivalent option is already present."""
    if any(is_other(o.label) for o in options):
        return options
    return options + [FreeformOption.wrap(label or settings.other_label)]


def merge_options(
    fetched: list[Option],
    selected: list[str],
    allow_other: bool = False,
) -> list[Option]:
    """Union of fetched options and selected values, deduplicated and sorted by label."""
    known = {o.value for o in fetched}
    merged = dedupe(list(fetched) + [FreeformOption.wrap(v) for v in selected if v not in known])
    # "Otro" and "Other" spellings collapse onto the first one seen
    other = next((o for o in merged if is_other(o.value)), None)
    merged = [o for o in merged if o is other or not is_other(o.value)]
    if allow_other:
        merged = with_other(merged)
    return sorted(merged, key=lambda o: o.label)


def _matches(option: Option, value: str) -> bool:
    return option.value == value or (is_other(value) and is_other(option.value))


def resolve_selection(options: list[Option], selected: list[str], single: bool) -> list[Option]:
    """Map selected values onto options; values without an option become freeform."""
    if single:
        for o in options:
            if any(_matches(o, v) for v in selected):
                return [o]
        return [FreeformOption.wrap(selected[0])] if selected else []

    matched = [o for o in options if any(_matches(o, v) for v in selected)]
    unmatched = [v for v in selected if not any(_matches(o, v) for o in options)]
    return matched + [FreeformOption.wrap(v) for v in unmatched]


class AutocompleteResolver:
    """Runs option queries against the backend and applies the resolution contract."""

    def __init__(self, backend: BackendClient, limit: int | None = None) -> None:
        self.backend = backend
        self.limit = limit or settings.autocomplete_limit

    async def resolve(self, request: AutocompleteRequest) -> AutocompleteResult:
        spec = build_option_query(request, self.limit)
        if spec is None:
            return AutocompleteResult()

        selected = [v for v in request.selected if v]
        degraded = False
        try:
            rows = await self.backend.select(spec)
            fetched = dedupe(rows_to_options(request, rows))
        except BackendError as e:
            logger.warning("Autocomplete query on %s failed: %s", spec.table, e)
            fetched = []
            degraded = True

        options = merge_options(fetched, selected, allow_other=request.allow_other)
        catalog = sorted(fetched, key=lambda o: o.label)
        return AutocompleteResult(
            options=options,
            selection=resolve_selection(catalog, selected, request.single),
            degraded=degraded,
        )
