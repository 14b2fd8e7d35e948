"""Health check endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from ..config import settings
from ..schemas import HealthResponse, ServiceStatus

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health", response_model=HealthResponse)
def health_check():
    from ..main import app_state

    services: list[ServiceStatus] = []
    overall = "ok"

    # Backend
    if "backend" not in app_state:
        services.append(ServiceStatus(name="backend", status="unavailable", detail="not initialized"))
        overall = "degraded"
    elif not settings.backend_enabled:
        services.append(ServiceStatus(name="backend", status="degraded", detail="anon key not configured"))
        overall = "degraded"
    else:
        services.append(ServiceStatus(name="backend", status="ok", detail=settings.backend_url))

    # Session refresher
    refresher = app_state.get("refresher")
    running = refresher.running if refresher else False
    services.append(ServiceStatus(
        name="session_refresher",
        status="ok" if running else "unavailable",
        detail="" if running else "not running",
    ))

    sessions = app_state.get("sessions")
    categories = app_state.get("categories")
    return HealthResponse(
        status=overall,
        signed_in=bool(sessions and sessions.user),
        categories_cached=len(categories.loaded) if categories else 0,
        services=services,
    )
