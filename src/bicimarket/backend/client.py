"""Async client for the hosted backend (REST queries, auth, object storage) using httpx."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable

import httpx

from ..config import settings
from ..schemas import AuthSession, AuthUser
from . import BackendError
from .query import QuerySpec

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


AuthListener = Callable[[AuthEvent, "AuthSession | None"], None]


class Subscription:
    """Handle returned by ``on_auth_state_change``; call ``unsubscribe`` to stop notifications."""

    def __init__(self, listeners: list[AuthListener], callback: AuthListener) -> None:
        self._listeners = listeners
        self.callback = callback

    def unsubscribe(self) -> None:
        if self.callback in self._listeners:
            self._listeners.remove(self.callback)


class BackendClient:
    """Async client for the marketplace's hosted backend.

    Holds the current auth session; queries and uploads are sent with the
    session's access token when signed in, with the anonymous key otherwise.
    """

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        bucket: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = (url or settings.backend_url).rstrip("/")
        self._anon_key = anon_key if anon_key is not None else settings.backend_anon_key
        self.bucket = bucket or settings.storage_bucket
        self._client = httpx.AsyncClient(
            timeout=settings.backend_request_timeout,
            transport=transport,
        )
        self._session: AuthSession | None = None
        self._listeners: list[AuthListener] = []

    # --- Query ---

    async def select(self, spec: QuerySpec) -> list[dict[str, Any]]:
        """Run a read query and return the matching rows."""
        resp = await self._send("GET", self._rest(spec.table), params=spec.to_params())
        rows = resp.json()
        if not isinstance(rows, list):
            raise BackendError(f"Unexpected response for {spec.table}: {rows!r}")
        return rows

    async def select_one(self, spec: QuerySpec) -> dict[str, Any] | None:
        rows = await self.select(spec.limit(1))
        return rows[0] if rows else None

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return it as stored by the backend."""
        resp = await self._send(
            "POST",
            self._rest(table),
            json=[row],
            headers={"Prefer": "return=representation"},
        )
        created = resp.json()
        if not created:
            raise BackendError(f"Insert into {table} returned no row")
        return created[0]

    # --- Storage ---

    async def upload(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Upload an object into the bucket and return its path."""
        await self._send(
            "POST",
            f"{self._url}/storage/v1/object/{self.bucket}/{path}",
            content=data,
            headers={"Content-Type": content_type, "x-upsert": "false"},
        )
        return path

    async def remove(self, paths: list[str]) -> None:
        if not paths:
            return
        await self._send(
            "DELETE",
            f"{self._url}/storage/v1/object/{self.bucket}",
            json={"prefixes": paths},
        )

    # --- Auth ---

    def get_session(self) -> AuthSession | None:
        return self._session

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        resp = await self._send(
            "POST",
            f"{self._url}/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        self._session = _parse_session(resp.json())
        self._emit(AuthEvent.SIGNED_IN)
        return self._session

    async def refresh_session(self) -> AuthSession:
        if self._session is None or not self._session.refresh_token:
            raise BackendError("No session to refresh")
        resp = await self._send(
            "POST",
            f"{self._url}/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self._session.refresh_token},
        )
        self._session = _parse_session(resp.json())
        self._emit(AuthEvent.TOKEN_REFRESHED)
        return self._session

    async def sign_out(self) -> None:
        """Revoke the session remotely and always drop it locally."""
        if self._session is not None:
            try:
                await self._send("POST", f"{self._url}/auth/v1/logout")
            except BackendError as e:
                logger.warning("Remote sign-out failed: %s", e)
        self._session = None
        self._emit(AuthEvent.SIGNED_OUT)

    def on_auth_state_change(self, callback: AuthListener) -> Subscription:
        self._listeners.append(callback)
        return Subscription(self._listeners, callback)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # --- Internals ---

    def _rest(self, table: str) -> str:
        return f"{self._url}/rest/v1/{table}"

    def _headers(self) -> dict[str, str]:
        token = self._session.access_token if self._session else self._anon_key
        return {"apikey": self._anon_key, "Authorization": f"Bearer {token}"}

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            resp = await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise BackendError(f"Backend HTTP error: {e}") from e

        if resp.status_code >= 400:
            raise BackendError(
                f"Backend returned {resp.status_code}: {_error_message(resp)}",
                status_code=resp.status_code,
            )
        return resp

    def _emit(self, event: AuthEvent) -> None:
        for callback in list(self._listeners):
            try:
                callback(event, self._session)
            except Exception:
                logger.exception("Auth listener failed on %s", event.value)


def _parse_session(data: dict[str, Any]) -> AuthSession:
    user = data.get("user") or {}
    expires_at = data.get("expires_at")
    if expires_at is None and data.get("expires_in") is not None:
        expires_at = int(time.time()) + int(data["expires_in"])
    try:
        return AuthSession(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", ""),
            expires_at=expires_at,
            user=AuthUser(id=user["id"], email=user.get("email")),
        )
    except KeyError as e:
        raise BackendError(f"Malformed auth response: missing {e}") from e


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text
    if isinstance(data, dict):
        for key in ("message", "msg", "error_description", "error"):
            if data.get(key):
                return str(data[key])
    return resp.text
