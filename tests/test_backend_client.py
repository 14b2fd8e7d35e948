"""Tests for BackendClient using httpx.MockTransport."""

import json

import httpx
import pytest

from bicimarket.backend import BackendError
from bicimarket.backend.client import AuthEvent, BackendClient
from bicimarket.backend.query import QuerySpec

TOKEN_RESPONSE = {
    "access_token": "access-1",
    "refresh_token": "refresh-1",
    "expires_in": 3600,
    "user": {"id": "user-1", "email": "rider@example.com"},
}


def _client(handler) -> BackendClient:
    return BackendClient(
        url="https://db.example.com",
        anon_key="anon",
        bucket="bike-images",
        transport=httpx.MockTransport(handler),
    )


class TestSelect:
    @pytest.mark.asyncio
    async def test_sends_params_and_anon_headers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json=[{"id": 1, "name": "Trek"}])

        client = _client(handler)
        rows = await client.select(QuerySpec("brands").ilike("name", "tr").gte("id", 1).lte("id", 9))
        await client.close()

        req = seen["request"]
        assert rows == [{"id": 1, "name": "Trek"}]
        assert req.method == "GET"
        assert req.url.path == "/rest/v1/brands"
        assert req.url.params["select"] == "*"
        assert req.url.params["name"] == "ilike.*tr*"
        assert req.url.params.get_list("id") == ["gte.1", "lte.9"]
        assert req.headers["apikey"] == "anon"
        assert req.headers["authorization"] == "Bearer anon"

    @pytest.mark.asyncio
    async def test_select_one_limits(self):
        seen = {}

        def handler(request):
            seen["limit"] = request.url.params["limit"]
            return httpx.Response(200, json=[])

        client = _client(handler)
        assert await client.select_one(QuerySpec("brands").eq("name", "Trek")) is None
        assert seen["limit"] == "1"

    @pytest.mark.asyncio
    async def test_error_status(self):
        client = _client(lambda r: httpx.Response(400, json={"message": "bad filter"}))
        with pytest.raises(BackendError) as exc:
            await client.select(QuerySpec("brands"))
        assert exc.value.status_code == 400
        assert "bad filter" in str(exc.value)

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)
        with pytest.raises(BackendError) as exc:
            await client.select(QuerySpec("brands"))
        assert exc.value.status_code is None

    @pytest.mark.asyncio
    async def test_non_list_response(self):
        client = _client(lambda r: httpx.Response(200, json={"oops": True}))
        with pytest.raises(BackendError):
            await client.select(QuerySpec("brands"))


class TestWrite:
    @pytest.mark.asyncio
    async def test_insert_returns_representation(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            seen["prefer"] = request.headers["prefer"]
            return httpx.Response(201, json=[{"id": "abc", "title": "Bici"}])

        client = _client(handler)
        row = await client.insert("listings", {"title": "Bici"})

        assert row == {"id": "abc", "title": "Bici"}
        assert seen["body"] == [{"title": "Bici"}]
        assert seen["prefer"] == "return=representation"

    @pytest.mark.asyncio
    async def test_upload_and_remove(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={})

        client = _client(handler)
        path = await client.upload("bici-1-0-a.jpg", b"img", "image/jpeg")
        await client.remove([path])
        await client.remove([])

        assert path == "bici-1-0-a.jpg"
        assert len(requests) == 2
        upload, remove = requests
        assert upload.url.path == "/storage/v1/object/bike-images/bici-1-0-a.jpg"
        assert upload.headers["content-type"] == "image/jpeg"
        assert upload.content == b"img"
        assert remove.method == "DELETE"
        assert json.loads(remove.content) == {"prefixes": ["bici-1-0-a.jpg"]}


class TestAuth:
    @pytest.mark.asyncio
    async def test_sign_in_emits_and_uses_token(self):
        tokens = []

        def handler(request):
            if request.url.path == "/auth/v1/token":
                assert request.url.params["grant_type"] == "password"
                return httpx.Response(200, json=TOKEN_RESPONSE)
            tokens.append(request.headers["authorization"])
            return httpx.Response(200, json=[])

        client = _client(handler)
        events = []
        client.on_auth_state_change(lambda event, session: events.append((event, session)))

        session = await client.sign_in_with_password("rider@example.com", "secret")
        await client.select(QuerySpec("listings"))

        assert session.user.id == "user-1"
        assert session.expires_at is not None
        assert client.get_session() is session
        assert events == [(AuthEvent.SIGNED_IN, session)]
        assert tokens == ["Bearer access-1"]

    @pytest.mark.asyncio
    async def test_bad_credentials(self):
        client = _client(lambda r: httpx.Response(400, json={"error_description": "Invalid login credentials"}))
        with pytest.raises(BackendError) as exc:
            await client.sign_in_with_password("rider@example.com", "wrong")
        assert exc.value.status_code == 400
        assert client.get_session() is None

    @pytest.mark.asyncio
    async def test_sign_out_clears_even_when_remote_fails(self):
        def handler(request):
            if request.url.path == "/auth/v1/logout":
                return httpx.Response(500, json={"message": "boom"})
            return httpx.Response(200, json=TOKEN_RESPONSE)

        client = _client(handler)
        events = []
        client.on_auth_state_change(lambda event, session: events.append((event, session)))
        await client.sign_in_with_password("rider@example.com", "secret")

        await client.sign_out()

        assert client.get_session() is None
        assert events[-1] == (AuthEvent.SIGNED_OUT, None)

    @pytest.mark.asyncio
    async def test_refresh_emits_token_refreshed(self):
        def handler(request):
            if request.url.params.get("grant_type") == "refresh_token":
                assert json.loads(request.content) == {"refresh_token": "refresh-1"}
                return httpx.Response(200, json={**TOKEN_RESPONSE, "access_token": "access-2"})
            return httpx.Response(200, json=TOKEN_RESPONSE)

        client = _client(handler)
        await client.sign_in_with_password("rider@example.com", "secret")
        events = []
        client.on_auth_state_change(lambda event, session: events.append(event))

        session = await client.refresh_session()

        assert session.access_token == "access-2"
        assert events == [AuthEvent.TOKEN_REFRESHED]

    @pytest.mark.asyncio
    async def test_refresh_without_session(self):
        client = _client(lambda r: httpx.Response(200, json=TOKEN_RESPONSE))
        with pytest.raises(BackendError):
            await client.refresh_session()

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        client = _client(lambda r: httpx.Response(200, json=TOKEN_RESPONSE))
        events = []
        sub = client.on_auth_state_change(lambda event, session: events.append(event))
        sub.unsubscribe()
        sub.unsubscribe()

        await client.sign_in_with_password("rider@example.com", "secret")
        assert events == []

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_others(self):
        client = _client(lambda r: httpx.Response(200, json=TOKEN_RESPONSE))
        events = []

        def broken(event, session):
            raise RuntimeError("listener bug")

        client.on_auth_state_change(broken)
        client.on_auth_state_change(lambda event, session: events.append(event))

        await client.sign_in_with_password("rider@example.com", "secret")
        assert events == [AuthEvent.SIGNED_IN]
