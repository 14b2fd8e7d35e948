"""Test fixtures: mocked backend client and sample catalog rows."""

from unittest.mock import MagicMock

import pytest

from bicimarket.backend.client import BackendClient
from bicimarket.schemas import AuthSession, AuthUser


@pytest.fixture()
def backend():
    """BackendClient stand-in: async methods are AsyncMocks, sync ones MagicMocks."""
    mock = MagicMock(spec=BackendClient)
    mock.get_session.return_value = None
    return mock


@pytest.fixture()
def user() -> AuthUser:
    return AuthUser(id="user-1", email="rider@example.com")


@pytest.fixture()
def auth_session(user) -> AuthSession:
    return AuthSession(access_token="token-1", refresh_token="refresh-1", expires_at=2_000_000_000, user=user)


@pytest.fixture()
def listing_row() -> dict:
    return {
        "id": "3f1c2a9e-0000-4000-8000-000000000001",
        "title": "Trek Madone SL6",
        "category_id": 1,
        "brand": "Trek",
        "model": "Madone",
        "bike_type": "carretera",
        "frame_size": "54",
        "wheel_size": "28",
        "components": ["Shimano 105"],
        "condition": "nuevo",
        "price": 1500,
        "location": "Madrid",
        "images": ["bici-1700000000000-0-front.jpg"],
        "description": "Como nueva",
        "created_at": "2024-05-01T10:00:00+00:00",
        "user_id": "user-1",
    }
