"""Typed authentication errors

Every failure the auth subsystem surfaces is an ``AuthError`` subclass with a
stable ``code`` so callers (CLI, server, UI) can discriminate without parsing
messages.
"""

from typing import Optional


class AuthError(Exception):
    """Base class for authentication failures"""

    code = "auth_error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__doc__ or self.code)

    @property
    def message(self) -> str:
        return str(self)


class MissingSession(AuthError):
    """No pending PKCE session. Please restart the login process."""

    code = "missing_session"


class StateMismatch(AuthError):
    """Invalid state parameter. Possible CSRF attack."""

    code = "state_mismatch"


class ProviderError(AuthError):
    """The provider declined the authorization request"""

    code = "provider_error"

    def __init__(self, error: str, description: Optional[str] = None):
        self.error = error
        self.description = description
        detail = f"{error}: {description}" if description else error
        super().__init__(f"Authorization failed: {detail}")


class MissingCode(AuthError):
    """No authorization code received"""

    code = "missing_code"


class InvalidTokenResponse(AuthError):
    """Malformed token response from the provider"""

    code = "invalid_token_response"


class TokenExchangeFailed(AuthError):
    """The token endpoint rejected the authorization code"""

    code = "token_exchange_failed"

    def __init__(self, status_code: Optional[int], error: Optional[str] = None):
        self.status_code = status_code
        self.error = error
        if status_code is None:
            super().__init__(f"Token exchange request failed: {error}")
        else:
            super().__init__(f"Token exchange failed: {status_code} - {error or 'unknown error'}")


class RefreshTokenInvalid(AuthError):
    """Refresh token is invalid or expired"""

    code = "refresh_token_invalid"


class RefreshNetworkError(AuthError):
    """Token refresh failed, retry later"""

    code = "refresh_network_error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class EntitlementRequired(AuthError):
    """The account does not hold the required subscription tier"""

    code = "entitlement_required"

    def __init__(self, required: str, actual: Optional[str] = None):
        self.required = required
        self.actual = actual
        super().__init__(
            f"Spotify {required.capitalize()} subscription is required to use this application"
        )


class InvalidProfile(AuthError):
    """Malformed user profile from the provider"""

    code = "invalid_profile"


class ProfileUnavailable(AuthError):
    """Failed to fetch user profile"""

    code = "profile_unavailable"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class StorageUnavailable(AuthError):
    """No credential storage backend accepted the operation"""

    code = "storage_unavailable"


class NotAuthenticated(AuthError):
    """No valid access token available"""

    code = "not_authenticated"
