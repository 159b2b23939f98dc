"""Session gate: the public face of the authentication subsystem"""

import asyncio
import contextlib
import datetime
import logging
import webbrowser
from typing import Any, Callable, Dict, Optional

import httpx

from settings import CONNECT_TIMEOUT, REQUEST_TIMEOUT
from .authorization import AuthorizationInitiator, Navigator
from .callback import CallbackProcessor
from .config import AuthConfig
from .credential_store import CredentialStore
from .entitlement import EntitlementVerifier
from .errors import (
    AuthError,
    EntitlementRequired,
    InvalidTokenResponse,
    ProfileUnavailable,
    RefreshNetworkError,
    RefreshTokenInvalid,
    StateMismatch,
)
from .models import AuthState, TokenSet, UserProfile, now_ms
from .pkce import PKCEGenerator
from .token_refresh import TokenRefresher

logger = logging.getLogger(__name__)

# Back-off for the refresh scheduler after a transient failure
SCHEDULER_RETRY_SECONDS = 30


class SessionGate:
    """Owns the token set and decides when it must be refreshed

    Construct one per application with an explicit ``AuthConfig``, call
    ``init()`` (or use ``async with``) to load persisted credentials, and
    ``aclose()`` on shutdown.
    """

    def __init__(
        self,
        config: AuthConfig,
        store: Optional[CredentialStore] = None,
        client: Optional[httpx.AsyncClient] = None,
        navigate: Navigator = webbrowser.open,
        clock: Callable[[], int] = now_ms,
        pkce: Optional[PKCEGenerator] = None,
    ):
        self.config = config
        self.store = store or CredentialStore.from_config(config)
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT)
        )
        self._clock = clock

        self.verifier = EntitlementVerifier(self.client, config)
        self.initiator = AuthorizationInitiator(config, self.store, pkce, navigate)
        self.processor = CallbackProcessor(
            self.client, config, self.store, self.verifier,
            persist=self._apply_tokens, clock=clock,
        )
        self.refresher = TokenRefresher(self.client, config, clock)

        self._tokens: Optional[TokenSet] = None
        self._state = AuthState.UNAUTHENTICATED
        self._generation = 0
        self._scheduler: Optional[asyncio.Task] = None
        self.entitled: Optional[bool] = None

    # Lifecycle

    def init(self) -> "SessionGate":
        """Load persisted credentials and report unusable backends"""
        self.store.available_backends()
        self._tokens = self.store.load_tokens()
        if self._tokens is not None:
            self._state = AuthState.AUTHENTICATED
            logger.debug("Restored persisted Spotify token set")
        return self

    async def aclose(self) -> None:
        """Stop the refresh scheduler and release the HTTP client"""
        task = self._scheduler
        self._cancel_scheduler()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "SessionGate":
        self.init()
        if self.config.proactive_refresh and self._tokens is not None:
            self.start_refresh_scheduler()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def tokens(self) -> Optional[TokenSet]:
        return self._tokens

    def _apply_tokens(self, tokens: TokenSet) -> None:
        # Memory first, then the backends in priority order
        self._tokens = tokens
        self._state = AuthState.AUTHENTICATED
        self.store.save_tokens(tokens)

    # Public operations

    def login(self) -> str:
        """Begin a login attempt (navigates to the provider)

        Returns:
            The authorization URL
        """
        auth_url = self.initiator.login()
        self._state = AuthState.AUTHENTICATING
        return auth_url

    async def handle_callback(
        self,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ) -> TokenSet:
        """Complete a login attempt from the provider's redirect parameters

        Raises:
            AuthError: Any of the typed callback failures; ``StateMismatch``
                also clears the session, ``EntitlementRequired`` keeps the token
        """
        try:
            tokens = await self.processor.handle_callback(code, state, error, error_description)
        except StateMismatch:
            self.logout()
            raise
        except EntitlementRequired:
            self.entitled = False
            if self.config.proactive_refresh and self._tokens is not None:
                self.start_refresh_scheduler()
            raise
        except AuthError:
            self._state = AuthState.AUTHENTICATED if self._tokens else AuthState.UNAUTHENTICATED
            raise

        self.entitled = True
        logger.info("Spotify authentication complete")
        if self.config.proactive_refresh:
            self.start_refresh_scheduler()
        return tokens

    def is_authenticated(self) -> bool:
        """True iff a token set exists and has not reached its expiry"""
        tokens = self._tokens
        return tokens is not None and not tokens.is_expired(self._clock())

    async def get_access_token(self) -> Optional[str]:
        """Return a usable access token, refreshing it when close to expiry

        Returns:
            Access token, or None when not authenticated or the refresh
            token was rejected (the session is then logged out)

        Raises:
            RefreshNetworkError: Refresh failed transiently and the current
                token has already expired
        """
        tokens = self._tokens
        if tokens is None:
            return None

        if not tokens.is_expired(self._clock(), self.config.refresh_buffer_ms):
            return tokens.access_token

        try:
            refreshed = await self._refresh(tokens)
        except (RefreshNetworkError, InvalidTokenResponse) as e:
            current = self._tokens
            if current is not None and not current.is_expired(self._clock()):
                logger.warning(f"Token refresh failed ({e}), using current token until it expires")
                return current.access_token
            raise
        return refreshed.access_token if refreshed else None

    async def refresh(self) -> Optional[TokenSet]:
        """Refresh now, regardless of how long the current token has left

        Returns:
            The new token set, or None when not authenticated or the refresh
            token was rejected (the session is then logged out)

        Raises:
            RefreshNetworkError: Transient failure
            InvalidTokenResponse: Malformed provider payload
        """
        tokens = self._tokens
        if tokens is None:
            return None
        return await self._refresh(tokens)

    async def _refresh(self, tokens: TokenSet) -> Optional[TokenSet]:
        generation = self._generation
        self._state = AuthState.REFRESHING
        try:
            refreshed = await self.refresher.refresh(tokens)
        except RefreshTokenInvalid:
            logger.error("Refresh token rejected, logging out")
            self.logout()
            return None
        except AuthError:
            self._state = AuthState.AUTHENTICATED if self._tokens else AuthState.UNAUTHENTICATED
            raise

        if generation != self._generation:
            # Logged out while the refresh was running
            return None

        current = self._tokens
        if current is refreshed:
            return refreshed
        if current is not tokens:
            # A newer sign-in replaced the set this refresh started from
            logger.info("Discarding refresh of a replaced token set")
            return current

        self._apply_tokens(refreshed)
        return refreshed

    def logout(self) -> None:
        """Forget all credentials; calling it again is a no-op"""
        self._cancel_scheduler()
        had_tokens = self._tokens is not None
        self._tokens = None
        self._state = AuthState.UNAUTHENTICATED
        self._generation += 1
        self.entitled = None
        self.store.clear_all()
        if had_tokens:
            logger.info("Logged out, credentials cleared")

    async def get_user_info(self) -> Optional[UserProfile]:
        """Fetch the current user's profile

        Returns:
            Profile, or None when not authenticated or the token was rejected
        """
        if not self.is_authenticated():
            return None

        access_token = await self.get_access_token()
        if access_token is None:
            return None

        try:
            return await self.verifier.fetch_profile(access_token)
        except ProfileUnavailable as e:
            if e.status_code == 401:
                logger.error("Access token is invalid, clearing authentication")
                self.logout()
                return None
            raise

    async def ensure_valid_session(self) -> bool:
        """Confirm with the provider that the stored session still works

        Returns:
            False when the session is gone (the gate is logged out)
        """
        try:
            return await self.get_user_info() is not None
        except (ProfileUnavailable, RefreshNetworkError) as e:
            logger.warning(f"Could not confirm session with Spotify: {e}")
            return self.is_authenticated()

    # Proactive refresh

    def start_refresh_scheduler(self) -> asyncio.Task:
        """Refresh in the background shortly before each expiry

        Must be called from a running event loop. Cancelled by ``logout()``
        and ``aclose()``.
        """
        if self._scheduler is None or self._scheduler.done():
            self._scheduler = asyncio.get_running_loop().create_task(self._run_refresh_scheduler())
        return self._scheduler

    async def _run_refresh_scheduler(self) -> None:
        while self._tokens is not None:
            tokens = self._tokens
            delay_ms = tokens.expires_at - self.config.refresh_buffer_ms - self._clock()
            if delay_ms > 0:
                await asyncio.sleep(delay_ms / 1000)
                continue

            try:
                access_token = await self.get_access_token()
            except (RefreshNetworkError, InvalidTokenResponse) as e:
                logger.warning(f"Scheduled token refresh failed: {e}")
                await asyncio.sleep(SCHEDULER_RETRY_SECONDS)
                continue

            if access_token is None:
                break
            if self._tokens is tokens:
                await asyncio.sleep(SCHEDULER_RETRY_SECONDS)

    def _cancel_scheduler(self) -> None:
        task = self._scheduler
        self._scheduler = None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    # Reporting

    def status(self) -> Dict[str, Any]:
        """Get session status without exposing secrets"""
        tokens = self._tokens
        if tokens is None:
            return {
                "state": self._state.value,
                "has_tokens": False,
                "is_expired": True,
                "expires_at": None,
                "time_until_expiry": "No tokens",
                "scope": None,
                "has_refresh_token": False,
                "entitled": self.entitled,
            }

        now = self._clock()
        remaining_s = (tokens.expires_at - now) // 1000
        expires_dt = datetime.datetime.fromtimestamp(tokens.expires_at / 1000, datetime.timezone.utc)

        if remaining_s <= 0:
            time_str = "expired"
        else:
            hours = remaining_s // 3600
            minutes = (remaining_s % 3600) // 60
            time_str = f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"

        return {
            "state": self._state.value,
            "has_tokens": True,
            "is_expired": tokens.is_expired(now),
            "expires_at": expires_dt.isoformat(),
            "time_until_expiry": time_str,
            "scope": tokens.scope,
            "has_refresh_token": bool(tokens.refresh_token),
            "entitled": self.entitled,
        }


def create_session_gate(config: AuthConfig, **kwargs):
    """Build the gate for ``config``: the offline mock when ``mock_auth`` is set

    Extra keyword arguments go to the SessionGate constructor.
    """
    if config.mock_auth:
        from .mock import MockSessionGate

        logger.info("Mock authentication enabled, Spotify OAuth is bypassed")
        return MockSessionGate(config)
    return SessionGate(config, **kwargs)
