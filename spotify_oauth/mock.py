"""Offline stand-in for the session gate, used in development and tests"""

import datetime
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from utils.storage import JsonFileBackend, StorageBackend, StorageError
from .config import AuthConfig
from .models import AuthState, UserProfile, now_ms

logger = logging.getLogger(__name__)

AUTH_STATE_KEY = "mock-auth-state"
EXPIRES_AT_KEY = "mock-auth-expire-at"

MOCK_ACCESS_TOKEN = "mock-access-token-12345"
MOCK_USER = UserProfile(
    id="mock-user-123",
    display_name="Mock User",
    email="mock@example.com",
    product="premium",
)


class MockSessionGate:
    """Same surface as SessionGate, no provider involved

    Login and callback simply mark the user authenticated. When
    ``max_token_ttl_seconds`` is configured the mock session expires after
    that many seconds, which is handy for exercising expiry paths.
    """

    def __init__(
        self,
        config: AuthConfig,
        backend: Optional[StorageBackend] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.config = config
        self.backend = backend or JsonFileBackend(Path(config.token_file).with_name("mock-store.json"))
        self._clock = clock
        self.entitled: Optional[bool] = None

    def init(self) -> "MockSessionGate":
        if self._read(AUTH_STATE_KEY) == "true":
            logger.info("Mock auth: restored authenticated state")
        return self

    async def aclose(self) -> None:
        pass

    async def __aenter__(self) -> "MockSessionGate":
        return self.init()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _read(self, key: str) -> Optional[str]:
        try:
            return self.backend.get(key)
        except StorageError as e:
            logger.warning(f"Mock auth: failed to read {key}: {e}")
            return None

    def _write(self, key: str, value: Optional[str]) -> None:
        try:
            if value is None:
                self.backend.delete(key)
            else:
                self.backend.set(key, value)
        except StorageError as e:
            logger.warning(f"Mock auth: failed to write {key}: {e}")

    def _mark_authenticated(self) -> None:
        self._write(AUTH_STATE_KEY, "true")
        ttl = self.config.max_token_ttl_seconds
        if ttl and ttl > 0:
            self._write(EXPIRES_AT_KEY, str(self._clock() + ttl * 1000))
        else:
            self._write(EXPIRES_AT_KEY, None)
        self.entitled = True

    @property
    def state(self) -> AuthState:
        return AuthState.AUTHENTICATED if self.is_authenticated() else AuthState.UNAUTHENTICATED

    def login(self) -> str:
        self._mark_authenticated()
        logger.info("Mock auth: user logged in")
        return self.config.redirect_uri

    async def handle_callback(
        self,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ) -> None:
        self._mark_authenticated()
        logger.info("Mock auth: handled callback, user authenticated")

    def _expires_at(self) -> Optional[int]:
        raw = self._read(EXPIRES_AT_KEY)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            return None

    def is_authenticated(self) -> bool:
        if self._read(AUTH_STATE_KEY) != "true":
            return False

        expires_at = self._expires_at()
        if expires_at is not None and self._clock() >= expires_at:
            logger.info("Mock auth: session expired")
            self.logout()
            return False
        return True

    async def get_access_token(self) -> Optional[str]:
        return MOCK_ACCESS_TOKEN if self.is_authenticated() else None

    async def refresh(self) -> None:
        """Nothing to refresh in mock mode"""
        return None

    def logout(self) -> None:
        self._write(AUTH_STATE_KEY, "false")
        self._write(EXPIRES_AT_KEY, None)
        self.entitled = None

    async def get_user_info(self) -> Optional[UserProfile]:
        return MOCK_USER if self.is_authenticated() else None

    async def ensure_valid_session(self) -> bool:
        return self.is_authenticated()

    def start_refresh_scheduler(self) -> None:
        """No tokens to refresh in mock mode"""
        return None

    def status(self) -> Dict[str, Any]:
        authenticated = self.is_authenticated()
        expires_at = self._expires_at() if authenticated else None
        if expires_at is not None:
            expires_at = datetime.datetime.fromtimestamp(expires_at / 1000, datetime.timezone.utc).isoformat()
        return {
            "state": self.state.value,
            "has_tokens": authenticated,
            "is_expired": not authenticated,
            "expires_at": expires_at,
            "time_until_expiry": "mock session" if authenticated else "No tokens",
            "scope": " ".join(self.config.scopes) if authenticated else None,
            "has_refresh_token": False,
            "entitled": self.entitled,
            "mock": True,
        }
