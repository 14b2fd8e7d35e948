"""Categories and brand/model autocomplete endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from ..autocomplete.field import AutocompleteField
from ..autocomplete.resolver import AutocompleteResolver
from ..catalog import CategoryCache
from ..schemas import AutocompleteRequest, AutocompleteResult, Category
from .deps import get_categories, get_resolver

logger = logging.getLogger(__name__)
router = APIRouter(tags=["catalog"])


@router.get("/api/categories", response_model=list[Category])
async def list_categories(categories: CategoryCache = Depends(get_categories)):
    return await categories.all()


@router.post("/api/autocomplete", response_model=AutocompleteResult)
async def autocomplete(body: AutocompleteRequest, resolver: AutocompleteResolver = Depends(get_resolver)):
    """One-shot resolution; never fails on backend errors (see ``degraded``)."""
    return await resolver.resolve(body)


@router.websocket("/ws/autocomplete")
async def autocomplete_stream(websocket: WebSocket, resolver: AutocompleteResolver = Depends(get_resolver)):
    """Debounced autocomplete: send one request per keystroke, receive only current results."""
    await websocket.accept()

    async def send(result: AutocompleteResult) -> None:
        await websocket.send_json(result.model_dump(mode="json"))

    field = AutocompleteField(resolver, send)
    try:
        while True:
            data = await websocket.receive_json()
            try:
                request = AutocompleteRequest(**data)
            except (TypeError, ValidationError) as e:
                await websocket.send_json({"error": "invalid request", "detail": str(e)})
                continue
            field.update(request)
    except WebSocketDisconnect:
        logger.debug("Autocomplete client disconnected")
    finally:
        await field.close()
