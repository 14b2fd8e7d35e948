"""APScheduler job that refreshes the auth token before it expires."""

from __future__ import annotations

import logging
import time

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..backend import BackendError
from ..backend.client import BackendClient
from ..config import settings

logger = logging.getLogger(__name__)


class SessionRefresher:
    def __init__(
        self,
        backend: BackendClient,
        interval: int | None = None,
        margin: int | None = None,
    ) -> None:
        self.backend = backend
        self.interval = interval or settings.session_refresh_interval
        self.margin = margin if margin is not None else settings.session_refresh_margin
        self._scheduler = AsyncIOScheduler()
        self.running = False

    def start(self) -> None:
        self._scheduler.add_job(
            self.refresh_if_due,
            "interval",
            seconds=self.interval,
            id="session_refresh",
            replace_existing=True,
            max_instances=1,
        )
        self._scheduler.start()
        self.running = True
        logger.info("Session refresher started (interval=%ds)", self.interval)

    def shutdown(self) -> None:
        if self.running:
            self._scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Session refresher stopped")

    async def refresh_if_due(self, now: float | None = None) -> bool:
        """Refresh when the session expires within the margin. Returns True if refreshed."""
        session = self.backend.get_session()
        if session is None or session.expires_at is None:
            return False
        now = time.time() if now is None else now
        if session.expires_at - now > self.margin:
            return False
        try:
            await self.backend.refresh_session()
        except BackendError as e:
            logger.warning("Session refresh failed: %s", e)
            return False
        logger.info("Session token refreshed for %s", session.user.email or session.user.id)
        return True
