"""Publish form state with dependent-field cascades."""

from __future__ import annotations

from dataclasses import MISSING, dataclass, field, fields

from ..catalog import accepts_components, is_bike_category, is_other
from ..config import settings
from ..sanitize import parse_number, sanitize_text
from ..schemas import BIKE_TYPES, Condition

TITLE_MAX = 100
LOCATION_MAX = 50


@dataclass
class PublishForm:
    title: str = ""
    category_id: int | None = None
    brand: str = ""
    brand_id: int | None = None
    model: str = ""
    model_id: int | None = None
    bike_type: str = ""
    frame_size: str = ""
    wheel_size: str = ""
    condition: str = Condition.USED.value
    price: str = ""
    description: str = ""
    location: str = ""
    components: list[str] = field(default_factory=list)

    # --- Cascades (applied synchronously, before any dependent lookup) ---

    def set_category(self, category_id: int | None) -> None:
        if category_id == self.category_id:
            return
        self.category_id = category_id
        self.brand, self.brand_id = "", None
        self.model, self.model_id = "", None
        self.bike_type = self.frame_size = self.wheel_size = ""
        self.components = []

    def set_brand(self, name: str, brand_id: int | None = None) -> None:
        name = name.strip()
        if name != self.brand:
            self.model, self.model_id = "", None
        self.brand = name
        self.brand_id = None if is_other(name) else brand_id

    def set_model(self, name: str, model_id: int | None = None) -> None:
        name = name.strip()
        self.model = name
        self.model_id = None if is_other(name) else model_id

    def set_components_text(self, text: str) -> None:
        self.components = [c.strip() for c in text.split(",") if c.strip()]

    @property
    def is_bike(self) -> bool:
        return is_bike_category(self.category_id)

    @property
    def takes_components(self) -> bool:
        return accepts_components(self.category_id)

    def validate(self) -> list[str]:
        """Return the problems that block submission (empty when the form is valid)."""
        problems: list[str] = []
        if not sanitize_text(self.title, TITLE_MAX):
            problems.append("title is required")
        if not self.category_id:
            problems.append("category is required")
        if not sanitize_text(self.location, LOCATION_MAX):
            problems.append("location is required")

        price = parse_number(self.price)
        if price is None:
            problems.append("price must be a number")
        elif not settings.price_min <= price <= settings.price_max:
            problems.append(f"price must be between {settings.price_min:g} and {settings.price_max:g}")

        if self.condition not in {c.value for c in Condition}:
            problems.append(f"condition must be one of: {', '.join(c.value for c in Condition)}")
        if self.is_bike and self.bike_type and self.bike_type not in BIKE_TYPES:
            problems.append(f"bike type must be one of: {', '.join(BIKE_TYPES)}")
        return problems

    def reset(self) -> None:
        for f in fields(self):
            default = f.default_factory() if f.default_factory is not MISSING else f.default
            setattr(self, f.name, default)
