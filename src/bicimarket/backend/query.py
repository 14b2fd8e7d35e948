"""Immutable description of a read request against a backend collection.

A ``QuerySpec`` is built by pure functions (see ``listings.query_builder`` and
``autocomplete.resolver``) and only turned into HTTP parameters by the client
at execution time.  Every builder method returns a new spec, so two specs built
from equal inputs compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

# Operators understood by the backend's REST query syntax
EQ = "eq"
ILIKE = "ilike"
IN = "in"
GTE = "gte"
LTE = "lte"
OR = "or"


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    def render(self, nested: bool = False) -> str:
        """Render the ``op.value`` part (or ``column.op.value`` when nested in a disjunction)."""
        if self.op == IN:
            body = f"in.({','.join(_quoted(v) for v in self.value)})"
        elif self.op == ILIKE:
            pattern = f"*{self.value}*"
            body = f"ilike.{_quoted(pattern) if nested else pattern}"
        else:
            body = f"{self.op}.{_quoted(self.value) if nested else _scalar(self.value)}"
        return f"{self.column}.{body}" if nested else body


@dataclass(frozen=True)
class Disjunction:
    filters: tuple[Filter, ...]

    def render(self) -> str:
        return "(" + ",".join(f.render(nested=True) for f in self.filters) + ")"


@dataclass(frozen=True)
class QuerySpec:
    table: str
    columns: str = "*"
    filters: tuple[Filter | Disjunction, ...] = field(default_factory=tuple)
    order_by: tuple[str, bool] | None = None  # (column, descending)
    limit_to: int | None = None

    def _with(self, item: Filter | Disjunction) -> QuerySpec:
        return replace(self, filters=self.filters + (item,))

    def select(self, columns: str) -> QuerySpec:
        return replace(self, columns=columns)

    def eq(self, column: str, value: Any) -> QuerySpec:
        return self._with(Filter(column, EQ, value))

    def ilike(self, column: str, fragment: str) -> QuerySpec:
        """Case-insensitive substring match."""
        return self._with(Filter(column, ILIKE, fragment))

    def in_(self, column: str, values) -> QuerySpec:
        return self._with(Filter(column, IN, tuple(values)))

    def gte(self, column: str, value: Any) -> QuerySpec:
        return self._with(Filter(column, GTE, value))

    def lte(self, column: str, value: Any) -> QuerySpec:
        return self._with(Filter(column, LTE, value))

    def any_of(self, *filters: Filter) -> QuerySpec:
        """Add a disjunction; a no-op when no filters are given."""
        if not filters:
            return self
        return self._with(Disjunction(tuple(filters)))

    def order(self, column: str, descending: bool = False) -> QuerySpec:
        return replace(self, order_by=(column, descending))

    def limit(self, count: int) -> QuerySpec:
        return replace(self, limit_to=count)

    def to_params(self) -> list[tuple[str, str]]:
        """Query-string parameters for the backend REST endpoint.

        Repeated columns (e.g. a price range) produce repeated keys, so a list
        of pairs is returned rather than a dict.
        """
        params: list[tuple[str, str]] = [("select", self.columns)]
        for f in self.filters:
            if isinstance(f, Disjunction):
                params.append((OR, f.render()))
            else:
                params.append((f.column, f.render()))
        if self.order_by is not None:
            column, descending = self.order_by
            params.append(("order", f"{column}.{'desc' if descending else 'asc'}"))
        if self.limit_to is not None:
            params.append(("limit", str(self.limit_to)))
        return params


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _quoted(value: Any) -> str:
    """Quote values that sit inside ``in.(...)`` lists or ``or=(...)`` groups."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _scalar(value)
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'
