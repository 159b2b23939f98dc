"""OAuth token refresh with single-flight deduplication"""

import asyncio
import logging
from typing import Callable, Optional

import httpx

from .config import AuthConfig
from .errors import RefreshTokenInvalid
from .models import TokenSet, now_ms
from .token_exchange import request_refresh

logger = logging.getLogger(__name__)


class TokenRefresher:
    """Refreshes access tokens, sharing one exchange between concurrent callers

    Spotify may rotate the refresh token on use, so a second concurrent
    exchange with the old token would fail. Every caller that arrives while
    an exchange is running awaits that same exchange instead.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: AuthConfig,
        clock: Callable[[], int] = now_ms,
    ):
        self.client = client
        self.config = config
        self._clock = clock
        self._in_flight: Optional[asyncio.Task] = None

    @property
    def in_progress(self) -> bool:
        return self._in_flight is not None

    async def refresh(self, tokens: TokenSet) -> TokenSet:
        """Exchange the refresh token for a new access token

        Args:
            tokens: Current token set

        Returns:
            New token set (keeps the old refresh token if none was issued)

        Raises:
            RefreshTokenInvalid: Refresh token missing, revoked or expired
            RefreshNetworkError: Transient failure, safe to retry later
            InvalidTokenResponse: Malformed provider payload
        """
        if self._in_flight is None:
            self._in_flight = asyncio.ensure_future(self._refresh(tokens))
        else:
            logger.debug("Token refresh already in progress, awaiting it")
        # One cancelled waiter must not cancel the shared exchange
        return await asyncio.shield(self._in_flight)

    async def _refresh(self, tokens: TokenSet) -> TokenSet:
        try:
            if not tokens.refresh_token:
                logger.warning("No refresh token available for refresh")
                raise RefreshTokenInvalid("No refresh token available")

            logger.info("Attempting to refresh Spotify access token...")
            response = await request_refresh(self.client, self.config, tokens.refresh_token)
            issued_at = self._clock()

            expires_in = self.config.cap_expires_in(response.expires_in)
            refreshed = tokens.with_access_token(
                access_token=response.access_token,
                expires_at=issued_at + int(expires_in * 1000),
                scope=response.scope,
                refresh_token=response.refresh_token,
            )
            logger.info("Successfully refreshed Spotify access token")
            return refreshed
        finally:
            self._in_flight = None
