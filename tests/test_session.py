"""Tests for SessionStore and SessionRefresher."""

from unittest.mock import MagicMock

import pytest

from bicimarket.auth.refresher import SessionRefresher
from bicimarket.auth.session import SessionStore
from bicimarket.backend import BackendError
from bicimarket.backend.client import AuthEvent


class TestSessionStore:
    def test_loading_until_started(self, backend):
        store = SessionStore(backend)
        assert store.loading is True
        assert store.user is None

    def test_start_reads_current_session(self, backend, auth_session):
        backend.get_session.return_value = auth_session
        store = SessionStore(backend)
        store.start()
        assert store.loading is False
        assert store.user.id == "user-1"
        backend.on_auth_state_change.assert_called_once_with(store._on_change)

    def test_follows_auth_events(self, backend, auth_session):
        store = SessionStore(backend)
        store.start()

        store._on_change(AuthEvent.SIGNED_IN, auth_session)
        assert store.user.email == "rider@example.com"

        store._on_change(AuthEvent.SIGNED_OUT, None)
        assert store.session is None
        assert store.user is None

    def test_close_unsubscribes(self, backend):
        subscription = MagicMock()
        backend.on_auth_state_change.return_value = subscription
        store = SessionStore(backend)
        store.start()
        store.close()
        store.close()
        subscription.unsubscribe.assert_called_once()


class TestSessionRefresher:
    @pytest.mark.asyncio
    async def test_no_session(self, backend):
        assert await SessionRefresher(backend, interval=60, margin=120).refresh_if_due() is False
        backend.refresh_session.assert_not_called()

    @pytest.mark.asyncio
    async def test_not_due(self, backend, auth_session):
        backend.get_session.return_value = auth_session
        refresher = SessionRefresher(backend, interval=60, margin=120)
        assert await refresher.refresh_if_due(now=auth_session.expires_at - 600) is False
        backend.refresh_session.assert_not_called()

    @pytest.mark.asyncio
    async def test_due(self, backend, auth_session):
        backend.get_session.return_value = auth_session
        refresher = SessionRefresher(backend, interval=60, margin=120)
        assert await refresher.refresh_if_due(now=auth_session.expires_at - 60) is True
        backend.refresh_session.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_refresh_failure_is_logged(self, backend, auth_session):
        backend.get_session.return_value = auth_session
        backend.refresh_session.side_effect = BackendError("Backend returned 400: invalid refresh token", status_code=400)
        refresher = SessionRefresher(backend, interval=60, margin=120)
        assert await refresher.refresh_if_due(now=auth_session.expires_at) is False

    @pytest.mark.asyncio
    async def test_start_and_shutdown(self, backend):
        refresher = SessionRefresher(backend, interval=60, margin=120)
        refresher.start()
        assert refresher.running is True
        assert refresher._scheduler.get_job("session_refresh") is not None
        refresher.shutdown()
        assert refresher.running is False
