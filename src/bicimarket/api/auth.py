"""Sign-in, sign-out and current-session endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..auth.session import SessionStore
from ..backend import BackendError
from ..backend.client import BackendClient
from ..schemas import LoginRequest, SessionResponse
from .deps import get_backend, get_session_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=SessionResponse)
async def login(
    body: LoginRequest,
    backend: BackendClient = Depends(get_backend),
    sessions: SessionStore = Depends(get_session_store),
):
    try:
        await backend.sign_in_with_password(body.email.strip(), body.password)
    except BackendError as e:
        if e.status_code in (400, 401):
            raise HTTPException(401, f"Sign-in failed: {e}")
        raise HTTPException(502, f"Sign-in unavailable: {e}")
    return SessionResponse(user=sessions.user, loading=sessions.loading)


@router.post("/logout", response_model=SessionResponse)
async def logout(
    backend: BackendClient = Depends(get_backend),
    sessions: SessionStore = Depends(get_session_store),
):
    await backend.sign_out()
    return SessionResponse(user=sessions.user, loading=sessions.loading)


@router.get("/session", response_model=SessionResponse)
def current_session(sessions: SessionStore = Depends(get_session_store)):
    return SessionResponse(user=sessions.user, loading=sessions.loading)
