"""Browse-page filter state."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, Field, field_validator

from ..catalog import is_bike_category

BIKE_ONLY_FIELDS = ("bike_type", "frame_size", "wheel_size")

# URL parameter name -> FilterSet field for the list-valued filters
_LIST_PARAMS = {"brand": "brands", "model": "models"}


class FilterSet(BaseModel):
    category_id: int | None = None
    bike_type: str | None = None
    condition: str | None = None
    brands: list[str] = Field(default_factory=list)
    models: list[str] = Field(default_factory=list)
    frame_size: str | None = None
    wheel_size: str | None = None
    price_min: float | None = None
    price_max: float | None = None

    model_config = {"frozen": True}

    @field_validator("bike_type", "condition", "frame_size", "wheel_size", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("category_id", "price_min", "price_max", mode="before")
    @classmethod
    def _blank_number(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("brands", "models", mode="before")
    @classmethod
    def _clean_names(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        out: list[str] = []
        for name in v:
            name = str(name).strip()
            if name and name not in out:
                out.append(name)
        return out

    def with_category(self, category_id: int | None) -> FilterSet:
        """Switch category; bike-only filters are cleared in the same update when leaving bikes."""
        update: dict[str, Any] = {"category_id": category_id}
        if not is_bike_category(category_id):
            update.update({name: None for name in BIKE_ONLY_FIELDS})
        return self.model_copy(update=update)

    @property
    def is_empty(self) -> bool:
        return self == FilterSet()

    # --- URL mirroring ---

    def to_query_params(self) -> list[tuple[str, str]]:
        """Encode the active filters for a shareable page URL."""
        params: list[tuple[str, str]] = []
        for name in ("category_id", "bike_type", "condition", "frame_size", "wheel_size", "price_min", "price_max"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, float) and value.is_integer():
                value = int(value)
            params.append((name, str(value)))
        for param, field in _LIST_PARAMS.items():
            params.extend((param, v) for v in getattr(self, field))
        return params

    @classmethod
    def from_query_params(cls, params: Mapping[str, Any]) -> FilterSet:
        """Inverse of ``to_query_params``; accepts a Starlette ``QueryParams`` or a plain dict."""
        data: dict[str, Any] = {}
        for name in cls.model_fields:
            if name in params and name not in _LIST_PARAMS.values():
                data[name] = params[name]
        for param, field in _LIST_PARAMS.items():
            if hasattr(params, "getlist"):
                values = params.getlist(param)
            else:
                values = params.get(param) or []
            if values:
                data[field] = values
        return cls(**data)
