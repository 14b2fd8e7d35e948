"""Web UI views: serves Jinja2 templates for browsing and publishing."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from ..api.deps import get_backend, get_browser, get_categories, get_publisher, get_session_store
from ..api.listings import read_uploads
from ..auth.session import SessionStore
from ..backend import BackendError
from ..backend.client import BackendClient
from ..catalog import CategoryCache, accepts_components, is_bike_category
from ..listings.browser import ListingBrowser
from ..listings.filters import FilterSet
from ..publish import PublishError, PublishValidationError
from ..publish.form import PublishForm
from ..publish.orchestrator import PublishOrchestrator
from ..schemas import BIKE_TYPES, Condition
from ..storage import first_image_url, public_url

logger = logging.getLogger(__name__)

_template_dir = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(_template_dir))
templates.env.globals.update(
    public_url=public_url,
    first_image_url=first_image_url,
    is_bike_category=is_bike_category,
    accepts_components=accepts_components,
    bike_types=BIKE_TYPES,
    conditions=[c.value for c in Condition],
)

router = APIRouter(tags=["web"])


def _int_or_none(value: Any) -> int | None:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def safe_next(value: str) -> str:
    """Only same-site paths are followed after sign-in."""
    parts = urlsplit(value)
    if parts.scheme or parts.netloc or not value.startswith("/") or value.startswith("//") or "\\" in value:
        return "/"
    return value


def form_from_data(data) -> PublishForm:
    """Rebuild the publish form from submitted fields.

    The page carries the category and brand it was rendered with
    (``prev_category_id``/``prev_brand``); the form starts from those and the
    submitted values go through the setters, so a changed category or brand
    clears its dependent fields exactly as on the server-side form.
    """
    prev_category = data.get("prev_category_id", data.get("category_id"))
    form = PublishForm(
        title=data.get("title", ""),
        category_id=_int_or_none(prev_category),
        brand=str(data.get("prev_brand", data.get("brand", ""))).strip(),
        bike_type=data.get("bike_type", ""),
        frame_size=data.get("frame_size", ""),
        wheel_size=data.get("wheel_size", ""),
        condition=data.get("condition", Condition.USED.value),
        price=data.get("price", ""),
        description=data.get("description", ""),
        location=data.get("location", ""),
    )
    form.set_model(data.get("model", ""), _int_or_none(data.get("model_id")))
    form.set_components_text(data.get("components", ""))

    category_id = _int_or_none(data.get("category_id"))
    if category_id != form.category_id:
        form.set_category(category_id)
        return form
    form.set_brand(data.get("brand", ""), _int_or_none(data.get("brand_id")))
    return form


# --- Browse ---


@router.get("/", response_class=HTMLResponse)
async def browse_page(
    request: Request,
    browser: ListingBrowser = Depends(get_browser),
    categories: CategoryCache = Depends(get_categories),
    sessions: SessionStore = Depends(get_session_store),
):
    try:
        filters = FilterSet.from_query_params(request.query_params)
    except ValidationError as e:
        logger.info("Ignoring invalid filters in URL: %s", e)
        filters = FilterSet()
    result = await browser.browse(filters)
    return templates.TemplateResponse(request, "listings.html", {
        "filters": filters,
        "categories": await categories.all(),
        "listings": result.listings,
        "error": result.error,
        "share_params": filters.to_query_params(),
        "user": sessions.user,
    })


@router.get("/listings/{listing_id}", response_class=HTMLResponse)
async def listing_page(
    request: Request,
    listing_id: str,
    browser: ListingBrowser = Depends(get_browser),
    categories: CategoryCache = Depends(get_categories),
    sessions: SessionStore = Depends(get_session_store),
):
    error = None
    try:
        listing = await browser.get(listing_id)
    except BackendError as e:
        listing, error = None, str(e)
    status = 200 if listing else 404
    category = await categories.name_of(listing.category_id) if listing else None
    return templates.TemplateResponse(request, "listing_detail.html", {
        "listing": listing,
        "category": category,
        "error": error,
        "user": sessions.user,
    }, status_code=status)


# --- Publish ---


@router.get("/publish", response_class=HTMLResponse)
async def publish_page(
    request: Request,
    categories: CategoryCache = Depends(get_categories),
    sessions: SessionStore = Depends(get_session_store),
):
    if sessions.user is None:
        return RedirectResponse("/login?next=/publish", status_code=303)
    form = PublishForm()
    form.set_category(_int_or_none(request.query_params.get("category_id")))
    return templates.TemplateResponse(request, "publish.html", {
        "form": form,
        "categories": await categories.all(),
        "errors": [],
        "user": sessions.user,
    })


@router.post("/publish", response_class=HTMLResponse)
async def publish_submit(
    request: Request,
    categories: CategoryCache = Depends(get_categories),
    sessions: SessionStore = Depends(get_session_store),
    publisher: PublishOrchestrator = Depends(get_publisher),
):
    if sessions.user is None:
        return RedirectResponse("/login?next=/publish", status_code=303)

    data = await request.form()
    form = form_from_data(data)
    if data.get("refresh"):
        # Category switch: re-render with dependent fields cleared, nothing submitted
        return templates.TemplateResponse(request, "publish.html", {
            "form": form,
            "categories": await categories.all(),
            "errors": [],
            "user": sessions.user,
        })

    files = [f for f in data.getlist("images") if isinstance(f, UploadFile)]
    try:
        listing = await publisher.submit(form, await read_uploads(files), sessions.user)
    except PublishValidationError as e:
        errors, status = e.problems, 422
    except PublishError as e:
        errors, status = [str(e)], 502
    else:
        return RedirectResponse(f"/listings/{listing.id}", status_code=303)

    # Form keeps its values for correction
    return templates.TemplateResponse(request, "publish.html", {
        "form": form,
        "categories": await categories.all(),
        "errors": errors,
        "user": sessions.user,
    }, status_code=status)


# --- Auth / dashboard ---


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, sessions: SessionStore = Depends(get_session_store)):
    return templates.TemplateResponse(request, "login.html", {
        "error": None,
        "email": "",
        "next": request.query_params.get("next", "/dashboard/my-listings"),
        "user": sessions.user,
    })


@router.post("/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    backend: BackendClient = Depends(get_backend),
    sessions: SessionStore = Depends(get_session_store),
):
    data = await request.form()
    email = str(data.get("email", "")).strip()
    next_url = safe_next(str(data.get("next") or "/dashboard/my-listings"))
    try:
        await backend.sign_in_with_password(email, str(data.get("password", "")))
    except BackendError as e:
        logger.info("Sign-in failed for %s: %s", email, e)
        return templates.TemplateResponse(request, "login.html", {
            "error": str(e),
            "email": email,
            "next": next_url,
            "user": sessions.user,
        }, status_code=401)
    return RedirectResponse(next_url, status_code=303)


@router.post("/logout")
async def logout_submit(backend: BackendClient = Depends(get_backend)):
    await backend.sign_out()
    return RedirectResponse("/", status_code=303)


@router.get("/dashboard/my-listings", response_class=HTMLResponse)
async def my_listings_page(
    request: Request,
    browser: ListingBrowser = Depends(get_browser),
    sessions: SessionStore = Depends(get_session_store),
):
    if sessions.user is None:
        return RedirectResponse("/login?next=/dashboard/my-listings", status_code=303)
    error = None
    try:
        listings = await browser.owned_by(sessions.user.id)
    except BackendError as e:
        listings, error = [], str(e)
    return templates.TemplateResponse(request, "my_listings.html", {
        "listings": listings,
        "error": error,
        "user": sessions.user,
    })
