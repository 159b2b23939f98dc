"""Data models for Spotify OAuth authentication"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds"""
    return int(time.time() * 1000)


class AuthState(str, Enum):
    """Lifecycle states of the session gate"""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"


@dataclass(frozen=True)
class TokenSet:
    """Bearer credential with expiry tracking

    Attributes:
        access_token: Bearer token for API authentication
        refresh_token: Token for refreshing expired access tokens (optional)
        expires_at: Expiry as epoch milliseconds
        scope: Space separated granted scopes
    """
    access_token: str
    refresh_token: Optional[str]
    expires_at: int
    scope: str

    def __post_init__(self):
        if not self.access_token:
            raise ValueError("TokenSet requires an access token")
        if not isinstance(self.expires_at, int) or isinstance(self.expires_at, bool):
            raise ValueError("TokenSet requires an integer expires_at")

    @classmethod
    def issued(
        cls,
        access_token: str,
        expires_in: float,
        scope: str,
        refresh_token: Optional[str] = None,
        issued_at: Optional[int] = None,
    ) -> "TokenSet":
        """Build a token set from a provider response received at ``issued_at``"""
        issued_at = now_ms() if issued_at is None else issued_at
        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=issued_at + int(expires_in * 1000),
            scope=scope,
        )

    def is_expired(self, at: int, buffer_ms: int = 0) -> bool:
        """Whether the token is expired at ``at`` (ms), treating the last ``buffer_ms`` as expired"""
        return at >= self.expires_at - buffer_ms

    def with_access_token(
        self,
        access_token: str,
        expires_at: int,
        scope: str,
        refresh_token: Optional[str] = None,
    ) -> "TokenSet":
        """Return a refreshed copy, keeping the old refresh token when none was issued"""
        return TokenSet(
            access_token=access_token,
            refresh_token=refresh_token or self.refresh_token,
            expires_at=expires_at,
            scope=scope,
        )


@dataclass(frozen=True)
class PKCESession:
    """Transient correlator between the authorize redirect and its callback

    Attributes:
        code_verifier: Secret whose SHA-256 was sent as the code challenge
        state: Anti-CSRF value echoed back by the provider
    """
    code_verifier: str
    state: str


@dataclass(frozen=True)
class UserProfile:
    """Spotify user profile information (never persisted)"""
    id: str
    display_name: str
    email: str
    product: str

    @property
    def subscription_tier(self) -> str:
        return self.product


@dataclass(frozen=True)
class TokenResponse:
    """Validated token endpoint payload"""
    access_token: str
    token_type: str
    scope: str
    expires_in: float
    refresh_token: Optional[str] = None
