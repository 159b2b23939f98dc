"""Explicit configuration for the authentication subsystem"""

from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlparse

import settings


@dataclass(frozen=True)
class AuthConfig:
    """Everything the session gate needs, passed in at construction

    Attributes:
        client_id: Spotify application client id
        redirect_uri: Registered redirect URI (loopback listener or server route)
        scopes: Requested OAuth scopes
        token_refresh_buffer_minutes: Refresh this many minutes before expiry
        required_subscription_tier: Product tier needed for playback features
        base_path: Cookie path scope for stored credentials
        max_token_ttl_seconds: Optional cap on access token lifetime
        mock_auth: Use the mock gate instead of real OAuth
        proactive_refresh: Run the background refresh scheduler
    """
    client_id: str
    redirect_uri: str
    scopes: List[str] = field(default_factory=lambda: list(settings.DEFAULT_SCOPES))
    token_refresh_buffer_minutes: int = 15
    required_subscription_tier: str = "premium"
    base_path: str = "/"
    max_token_ttl_seconds: Optional[int] = None
    mock_auth: bool = False
    proactive_refresh: bool = False
    authorize_endpoint: str = settings.AUTHORIZE_ENDPOINT
    token_endpoint: str = settings.TOKEN_ENDPOINT
    profile_endpoint: str = settings.PROFILE_ENDPOINT
    cookie_file: str = settings.COOKIE_FILE
    token_file: str = settings.TOKEN_FILE

    @classmethod
    def from_settings(cls) -> "AuthConfig":
        """Build the configuration from environment/.env backed settings"""
        return cls(
            client_id=settings.CLIENT_ID.strip(),
            redirect_uri=settings.REDIRECT_URI.strip(),
            scopes=list(settings.SCOPES),
            token_refresh_buffer_minutes=settings.TOKEN_REFRESH_BUFFER_MINUTES,
            required_subscription_tier=settings.REQUIRED_SUBSCRIPTION_TIER,
            base_path=settings.BASE_PATH.strip() or "/",
            max_token_ttl_seconds=settings.MAX_TOKEN_TTL_SECONDS or None,
            mock_auth=settings.MOCK_AUTH,
            proactive_refresh=settings.PROACTIVE_REFRESH,
            cookie_file=settings.COOKIE_FILE,
            token_file=settings.TOKEN_FILE,
        )

    def validate(self) -> "AuthConfig":
        """Check the configuration, raising ValueError on the first problem

        Returns:
            self, for chaining
        """
        if not self.mock_auth and not self.client_id.strip():
            raise ValueError("Invalid auth config: client_id must be a non-empty string")

        parsed = urlparse(self.redirect_uri)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Invalid auth config: redirect_uri must be a valid URL")

        if not 1 <= self.token_refresh_buffer_minutes <= 60:
            raise ValueError(
                "Invalid auth config: token_refresh_buffer_minutes must be a number between 1 and 60"
            )

        if not self.base_path.startswith("/"):
            raise ValueError("Invalid auth config: base_path must start with '/'")

        if self.max_token_ttl_seconds is not None and self.max_token_ttl_seconds <= 0:
            raise ValueError("Invalid auth config: max_token_ttl_seconds must be positive")

        return self

    @property
    def refresh_buffer_ms(self) -> int:
        return self.token_refresh_buffer_minutes * 60 * 1000

    @property
    def cookie_domain(self) -> str:
        """Host the credential cookies are scoped to (the redirect URI host)"""
        return urlparse(self.redirect_uri).hostname or "localhost"

    def cap_expires_in(self, expires_in: float) -> float:
        """Apply the optional token lifetime cap"""
        if self.max_token_ttl_seconds:
            return min(expires_in, self.max_token_ttl_seconds)
        return expires_in
