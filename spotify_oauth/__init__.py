"""
Spotify OAuth (Authorization Code + PKCE) session module
"""
from .config import AuthConfig
from .errors import (
    AuthError,
    MissingSession,
    StateMismatch,
    ProviderError,
    MissingCode,
    InvalidTokenResponse,
    TokenExchangeFailed,
    RefreshTokenInvalid,
    RefreshNetworkError,
    EntitlementRequired,
    InvalidProfile,
    ProfileUnavailable,
    StorageUnavailable,
    NotAuthenticated,
)
from .models import AuthState, TokenSet, PKCESession, UserProfile, TokenResponse, now_ms
from .pkce import PKCEGenerator
from .credential_store import CredentialStore
from .authorization import AuthorizationInitiator
from .callback import CallbackProcessor
from .token_refresh import TokenRefresher
from .entitlement import EntitlementVerifier
from .session_gate import SessionGate, create_session_gate
from .mock import MockSessionGate
from .callback_server import CallbackOutcome, OAuthCallbackServer, start_callback_server

__all__ = [
    # Configuration
    "AuthConfig",
    # Errors
    "AuthError",
    "MissingSession",
    "StateMismatch",
    "ProviderError",
    "MissingCode",
    "InvalidTokenResponse",
    "TokenExchangeFailed",
    "RefreshTokenInvalid",
    "RefreshNetworkError",
    "EntitlementRequired",
    "InvalidProfile",
    "ProfileUnavailable",
    "StorageUnavailable",
    "NotAuthenticated",
    # Models
    "AuthState",
    "TokenSet",
    "PKCESession",
    "UserProfile",
    "TokenResponse",
    "now_ms",
    # Components
    "PKCEGenerator",
    "CredentialStore",
    "AuthorizationInitiator",
    "CallbackProcessor",
    "TokenRefresher",
    "EntitlementVerifier",
    # Gate
    "SessionGate",
    "MockSessionGate",
    "create_session_gate",
    # Callback Server
    "CallbackOutcome",
    "OAuthCallbackServer",
    "start_callback_server",
]
