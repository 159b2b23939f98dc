"""
Tests for the FastAPI surface, driven through ASGITransport.
"""

from collections.abc import AsyncGenerator
from urllib.parse import parse_qs, urlparse

import httpx
import pytest_asyncio
from httpx import ASGITransport

from server.app import create_app, status_for
from spotify_oauth import (
    EntitlementRequired,
    NotAuthenticated,
    ProviderError,
    RefreshNetworkError,
    StorageUnavailable,
    TokenExchangeFailed,
)
from web_api import SpotifyWebApi

from conftest import PREMIUM_PROFILE, sign_in


@pytest_asyncio.fixture
async def api(gate, http_client) -> AsyncGenerator[httpx.AsyncClient, None]:
    app = create_app(gate, web_api=SpotifyWebApi(gate, client=http_client))
    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


class TestStatusMapping:
    def test_error_statuses(self) -> None:
        assert status_for(NotAuthenticated("x")) == 401
        assert status_for(EntitlementRequired("x")) == 403
        assert status_for(StorageUnavailable("x")) == 500
        assert status_for(TokenExchangeFailed(400)) == 502
        assert status_for(RefreshNetworkError("x")) == 503
        assert status_for(ProviderError("access_denied")) == 400


class TestHealthAndStatus:
    async def test_health(self, api) -> None:
        response = await api.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["authenticated"] is False
        assert body["mock"] is False

    async def test_status_signed_out(self, api) -> None:
        response = await api.get("/auth/status")

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "unauthenticated"
        assert body["has_tokens"] is False
        assert body["time_until_expiry"] == "No tokens"

    async def test_status_never_exposes_tokens(self, api, gate, navigator) -> None:
        await sign_in(gate, navigator)

        response = await api.get("/auth/status")

        assert response.json()["state"] == "authenticated"
        assert "access-1" not in response.text
        assert "refresh-1" not in response.text


class TestLoginFlow:
    async def test_login_redirects_to_spotify(self, api, store) -> None:
        response = await api.get("/auth/login")

        assert response.status_code == 302
        location = urlparse(response.headers["location"])
        assert location.netloc == "accounts.spotify.com"
        assert parse_qs(location.query)["state"] == [store.load_pkce_session().state]

    async def test_callback_completes_sign_in(self, api, gate) -> None:
        login = await api.get("/auth/login")
        state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]

        response = await api.get("/callback", params={"code": "abc123", "state": state})

        assert response.status_code == 200
        assert "Authentication Successful" in response.text
        assert gate.is_authenticated()

    async def test_callback_state_mismatch(self, api, stub) -> None:
        await api.get("/auth/login")

        response = await api.get("/callback", params={"code": "abc123", "state": "forged"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "state_mismatch"
        assert stub.token_calls == 0

    async def test_callback_provider_error(self, api) -> None:
        login = await api.get("/auth/login")
        state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]

        response = await api.get("/callback", params={"error": "access_denied", "state": state})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "provider_error"

    async def test_callback_without_entitlement(self, api, stub) -> None:
        stub.profile = {**PREMIUM_PROFILE, "product": "free"}
        login = await api.get("/auth/login")
        state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]

        response = await api.get("/callback", params={"code": "abc123", "state": state})

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "entitlement_required"


class TestSessionEndpoints:
    async def test_me_requires_session(self, api) -> None:
        response = await api.get("/auth/me")

        assert response.status_code == 401
        assert response.json() == {
            "error": {"code": "not_authenticated", "message": "Not logged in to Spotify"}
        }

    async def test_me_returns_profile(self, api, gate, navigator) -> None:
        await sign_in(gate, navigator)

        response = await api.get("/auth/me")

        assert response.status_code == 200
        assert response.json() == PREMIUM_PROFILE

    async def test_logout(self, api, gate, navigator) -> None:
        await sign_in(gate, navigator)

        response = await api.post("/auth/logout")

        assert response.json() == {"status": "logged_out"}
        assert not gate.is_authenticated()


class TestPlayerEndpoints:
    async def test_search_requires_session(self, api) -> None:
        response = await api.get("/v1/search", params={"q": "song"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "not_authenticated"

    async def test_search(self, api, gate, navigator, stub) -> None:
        await sign_in(gate, navigator)
        stub.api_handler = lambda request: httpx.Response(200, json={"tracks": {"items": [{
            "id": "t1",
            "name": "Song",
            "artists": [{"name": "Artist"}],
            "album": {"name": "Album", "images": []},
            "duration_ms": 1000,
            "uri": "spotify:track:t1",
        }]}})

        response = await api.get("/v1/search", params={"q": "song", "limit": 5})

        assert response.status_code == 200
        body = response.json()
        assert body["query"] == "song"
        assert body["tracks"][0]["id"] == "t1"
        assert body["tracks"][0]["artists"] == ["Artist"]

    async def test_search_limit_validated(self, api) -> None:
        response = await api.get("/v1/search", params={"q": "song", "limit": 51})
        assert response.status_code == 422

    async def test_web_api_error_passthrough(self, api, gate, navigator, stub) -> None:
        await sign_in(gate, navigator)
        stub.api_handler = lambda request: httpx.Response(429, text="")

        response = await api.get("/v1/search", params={"q": "song"})

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "web_api_error"

    async def test_player_inactive(self, api, gate, navigator, stub) -> None:
        await sign_in(gate, navigator)
        stub.api_handler = lambda request: httpx.Response(204)

        response = await api.get("/v1/player")

        assert response.json()["active"] is False

    async def test_play_pause_seek(self, api, gate, navigator, stub) -> None:
        await sign_in(gate, navigator)
        stub.api_handler = lambda request: httpx.Response(204)

        play = await api.put("/v1/player/play", json={"uris": ["spotify:track:t1"], "position_ms": 500})
        pause = await api.put("/v1/player/pause")
        seek = await api.put("/v1/player/seek", json={"position_ms": 1000})

        assert [play.status_code, pause.status_code, seek.status_code] == [204, 204, 204]
        paths = [r.url.path for r in stub.requests if r.url.path.startswith("/v1/me/player")]
        assert paths == ["/v1/me/player/play", "/v1/me/player/pause", "/v1/me/player/seek"]

    async def test_invalid_bodies_rejected(self, api, gate, navigator) -> None:
        await sign_in(gate, navigator)

        assert (await api.put("/v1/player/play", json={"uris": []})).status_code == 422
        assert (await api.put("/v1/player/seek", json={"position_ms": -5})).status_code == 422
