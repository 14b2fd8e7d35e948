"""Process-wide auth session holder."""

from __future__ import annotations

import logging

from ..backend.client import AuthEvent, BackendClient, Subscription
from ..schemas import AuthSession, AuthUser

logger = logging.getLogger(__name__)


class SessionStore:
    """Caches the current session and follows sign-in / sign-out / refresh events.

    ``start`` on application startup, ``close`` on shutdown.
    """

    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend
        self.session: AuthSession | None = None
        self.loading = True
        self._subscription: Subscription | None = None

    @property
    def user(self) -> AuthUser | None:
        return self.session.user if self.session else None

    def start(self) -> None:
        self.session = self.backend.get_session()
        self._subscription = self.backend.on_auth_state_change(self._on_change)
        self.loading = False

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_change(self, event: AuthEvent, session: AuthSession | None) -> None:
        self.session = session
        self.loading = False
        logger.info("Auth state changed: %s", event.value)
