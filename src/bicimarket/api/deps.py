"""Dependency providers backed by the lifespan-managed ``app_state``."""

from __future__ import annotations

from fastapi import Depends, HTTPException

from ..auth.session import SessionStore
from ..autocomplete.resolver import AutocompleteResolver
from ..backend.client import BackendClient
from ..catalog import CategoryCache
from ..listings.browser import ListingBrowser
from ..publish.orchestrator import PublishOrchestrator
from ..schemas import AuthUser


def _state(key: str):
    from ..main import app_state

    service = app_state.get(key)
    if service is None:
        raise HTTPException(503, f"{key} not initialized")
    return service


def get_backend() -> BackendClient:
    return _state("backend")


def get_session_store() -> SessionStore:
    return _state("sessions")


def get_categories() -> CategoryCache:
    return _state("categories")


def get_resolver() -> AutocompleteResolver:
    return _state("resolver")


def get_browser() -> ListingBrowser:
    return _state("browser")


def get_publisher() -> PublishOrchestrator:
    return _state("publisher")


def require_user(sessions: SessionStore = Depends(get_session_store)) -> AuthUser:
    if sessions.user is None:
        raise HTTPException(401, "Sign in required")
    return sessions.user
