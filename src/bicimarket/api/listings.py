"""Browse, detail and publish endpoints for listings."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from pydantic import ValidationError

from ..backend import BackendError
from ..listings.browser import ListingBrowser
from ..listings.filters import FilterSet
from ..publish import ImageUploadError, ListingPersistError, PublishValidationError
from ..publish.form import PublishForm
from ..publish.orchestrator import ImageUpload, PublishOrchestrator
from ..schemas import AuthUser, Listing, ListingListResponse, ListingResponse
from ..storage import public_url
from .deps import get_browser, get_publisher, require_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["listings"])


def to_response(listing: Listing) -> ListingResponse:
    return ListingResponse(
        **listing.model_dump(),
        image_urls=[url for url in (public_url(p) for p in listing.images) if url],
    )


async def read_uploads(files: list[UploadFile]) -> list[ImageUpload]:
    uploads: list[ImageUpload] = []
    for f in files:
        if not f.filename:
            continue
        uploads.append(ImageUpload(
            filename=f.filename,
            data=await f.read(),
            content_type=f.content_type or "application/octet-stream",
        ))
    return uploads


@router.get("/listings", response_model=ListingListResponse)
async def browse_listings(request: Request, browser: ListingBrowser = Depends(get_browser)):
    """Filters come from the query string (``brand``/``model`` may repeat)."""
    try:
        filters = FilterSet.from_query_params(request.query_params)
    except ValidationError as e:
        raise HTTPException(422, f"Invalid filters: {e}")
    result = await browser.browse(filters)
    items = [to_response(l) for l in result.listings]
    return ListingListResponse(items=items, total=len(items), error=result.error)


@router.get("/me/listings", response_model=list[ListingResponse])
async def my_listings(
    user: AuthUser = Depends(require_user),
    browser: ListingBrowser = Depends(get_browser),
):
    try:
        listings = await browser.owned_by(user.id)
    except BackendError as e:
        raise HTTPException(502, f"Could not load listings: {e}")
    return [to_response(l) for l in listings]


@router.get("/listings/{listing_id}", response_model=ListingResponse)
async def get_listing(listing_id: str, browser: ListingBrowser = Depends(get_browser)):
    try:
        listing = await browser.get(listing_id)
    except BackendError as e:
        raise HTTPException(502, f"Could not load listing {listing_id}: {e}")
    if listing is None:
        raise HTTPException(404, f"Listing {listing_id} not found")
    return to_response(listing)


@router.post("/listings", response_model=ListingResponse, status_code=201)
async def publish_listing(
    title: str = Form(""),
    category_id: int | None = Form(None),
    brand: str = Form(""),
    brand_id: int | None = Form(None),
    model: str = Form(""),
    model_id: int | None = Form(None),
    bike_type: str = Form(""),
    frame_size: str = Form(""),
    wheel_size: str = Form(""),
    condition: str = Form("usado"),
    price: str = Form(""),
    description: str = Form(""),
    location: str = Form(""),
    components: str = Form(""),
    images: list[UploadFile] = File(default=[]),
    user: AuthUser = Depends(require_user),
    publisher: PublishOrchestrator = Depends(get_publisher),
):
    form = PublishForm(
        title=title, category_id=category_id,
        brand=brand, brand_id=brand_id, model=model, model_id=model_id,
        bike_type=bike_type, frame_size=frame_size, wheel_size=wheel_size,
        condition=condition, price=price, description=description, location=location,
    )
    form.set_components_text(components)

    try:
        listing = await publisher.submit(form, await read_uploads(images), user)
    except PublishValidationError as e:
        raise HTTPException(422, e.problems)
    except (ImageUploadError, ListingPersistError) as e:
        raise HTTPException(502, str(e))
    return to_response(listing)
