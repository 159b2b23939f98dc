"""
Pytest configuration and fixtures for walkup-auth tests.
"""

import asyncio
from collections.abc import AsyncGenerator
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, parse_qsl, urlparse

import httpx
import pytest
import pytest_asyncio

from spotify_oauth import AuthConfig, CredentialStore, SessionGate
from utils.storage import MemoryBackend

CLIENT_ID = "test-client-id"
REDIRECT_URI = "http://127.0.0.1:8000/callback"
T0 = 1_700_000_000_000


class FakeClock:
    """Injectable millisecond clock"""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def seconds(self) -> float:
        return self.now / 1000

    def advance(self, ms: int) -> None:
        self.now += ms


def token_payload(
    access_token: str = "access-1",
    refresh_token: Optional[str] = "refresh-1",
    expires_in: float = 3600,
    scope: str = "streaming user-read-email",
) -> Dict[str, Any]:
    payload = {
        "access_token": access_token,
        "token_type": "Bearer",
        "scope": scope,
        "expires_in": expires_in,
    }
    if refresh_token is not None:
        payload["refresh_token"] = refresh_token
    return payload


PREMIUM_PROFILE = {
    "id": "user-1",
    "display_name": "Test User",
    "email": "test@example.com",
    "product": "premium",
}


class SpotifyStub:
    """Programmable stand-in for accounts.spotify.com and api.spotify.com"""

    def __init__(self):
        self.token_responses: List[Tuple[int, Any]] = [(200, token_payload())]
        self.profile_status = 200
        self.profile: Any = dict(PREMIUM_PROFILE)
        self.api_handler: Optional[Callable[[httpx.Request], httpx.Response]] = None
        self.token_delay = 0.0
        self.token_delays: List[float] = []
        self.requests: List[httpx.Request] = []
        self.token_forms: List[Dict[str, str]] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/api/token":
            self.token_forms.append(dict(parse_qsl(request.content.decode())))
            delay = self.token_delays.pop(0) if self.token_delays else self.token_delay
            if len(self.token_responses) > 1:
                status, body = self.token_responses.pop(0)
            else:
                status, body = self.token_responses[0]
            if delay:
                await asyncio.sleep(delay)
            return httpx.Response(status, json=body)

        if request.url.path == "/v1/me":
            return httpx.Response(self.profile_status, json=self.profile)

        if self.api_handler is not None:
            return self.api_handler(request)

        return httpx.Response(404, json={"error": {"status": 404, "message": "Not found"}})

    @property
    def token_calls(self) -> int:
        return len(self.token_forms)


class RecordingNavigator:
    def __init__(self, result: bool = True):
        self.urls: List[str] = []
        self.result = result

    def __call__(self, url: str) -> bool:
        self.urls.append(url)
        return self.result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config(tmp_path) -> AuthConfig:
    return AuthConfig(
        client_id=CLIENT_ID,
        redirect_uri=REDIRECT_URI,
        cookie_file=str(tmp_path / "cookies.lwp"),
        token_file=str(tmp_path / "store.json"),
    )


@pytest.fixture
def backends(clock: FakeClock) -> Tuple[MemoryBackend, MemoryBackend]:
    return MemoryBackend(clock.seconds), MemoryBackend(clock.seconds)


@pytest.fixture
def store(backends, clock: FakeClock) -> CredentialStore:
    return CredentialStore(list(backends), clock=clock)


@pytest.fixture
def stub() -> SpotifyStub:
    return SpotifyStub()


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest_asyncio.fixture
async def http_client(stub: SpotifyStub) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(stub.handler)) as client:
        yield client


@pytest_asyncio.fixture
async def gate(config, store, http_client, navigator, clock) -> AsyncGenerator[SessionGate, None]:
    session_gate = SessionGate(config, store=store, client=http_client, navigate=navigator, clock=clock)
    session_gate.init()
    yield session_gate
    await session_gate.aclose()


async def sign_in(gate: SessionGate, navigator: RecordingNavigator, code: str = "abc123"):
    """Run login and a matching callback; returns the resulting token set"""
    gate.login()
    state = parse_qs(urlparse(navigator.urls[-1]).query)["state"][0]
    return await gate.handle_callback(code, state)
