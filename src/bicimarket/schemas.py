from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


# --- Catalog ---

class Category(BaseModel):
    id: int
    name: str


class Brand(BaseModel):
    id: int
    name: str


class Model(BaseModel):
    id: int
    name: str
    brand_id: int | None = None


class ModelWithBrand(BaseModel):
    brand_id: int | None = None
    brand_name: str
    model_id: int | None = None
    model_name: str


# --- Listing ---

class Condition(str, Enum):
    NEW = "nuevo"
    USED = "usado"


BIKE_TYPES = ("urbana", "carretera", "mtb", "gravel", "electrica")


class Listing(BaseModel):
    id: str
    title: str
    category_id: int | None = None
    brand: str | None = None
    model: str | None = None
    brand_id: int | None = None
    model_id: int | None = None
    bike_type: str | None = None
    frame_size: str | None = None
    wheel_size: str | None = None
    components: list[str] | None = None
    condition: str
    price: float
    location: str = ""
    images: list[str] = Field(default_factory=list)
    description: str | None = None
    created_at: datetime | None = None
    user_id: str | None = None


class ListingResponse(Listing):
    image_urls: list[str] = Field(default_factory=list)


class ListingListResponse(BaseModel):
    items: list[ListingResponse]
    total: int
    error: str | None = None


# --- Autocomplete ---

class EntitySelector(str, Enum):
    BRANDS = "brands"
    MODELS = "models"
    MODELS_WITH_BRANDS = "models_with_brands"


class KnownOption(BaseModel):
    """An option backed by a catalog row."""

    kind: Literal["known"] = "known"
    value: str
    label: str
    brand_id: int | None = None


class FreeformOption(BaseModel):
    """A user-entered value that does not correspond to any catalog row."""

    kind: Literal["freeform"] = "freeform"
    value: str
    label: str

    @classmethod
    def wrap(cls, text: str) -> "FreeformOption":
        return cls(value=text, label=text)


Option = Annotated[Union[KnownOption, FreeformOption], Field(discriminator="kind")]


class AutocompleteRequest(BaseModel):
    entity: EntitySelector | None = None
    query: str = ""
    selected: list[str] = Field(default_factory=list)
    filters: dict[str, str | int | list[str]] = Field(default_factory=dict)
    single: bool = False
    allow_other: bool = False
    brand_id: int | None = None


class AutocompleteResult(BaseModel):
    options: list[Option] = Field(default_factory=list)
    selection: list[Option] = Field(default_factory=list)
    degraded: bool = False


# --- Auth ---

class AuthUser(BaseModel):
    id: str
    email: str | None = None


class AuthSession(BaseModel):
    access_token: str
    refresh_token: str = ""
    expires_at: int | None = None  # unix seconds
    user: AuthUser


class LoginRequest(BaseModel):
    email: str
    password: str


class SessionResponse(BaseModel):
    user: AuthUser | None
    loading: bool


# --- System ---

class ServiceStatus(BaseModel):
    name: str
    status: str  # ok / degraded / unavailable
    detail: str = ""


class HealthResponse(BaseModel):
    status: str
    signed_in: bool
    categories_cached: int
    services: list[ServiceStatus] = []
