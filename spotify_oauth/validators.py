"""Parsing of untrusted provider payloads into typed values"""

from typing import Any

from .errors import InvalidProfile, InvalidTokenResponse
from .models import TokenResponse, UserProfile


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_token_response(data: Any) -> TokenResponse:
    """Validate a token endpoint payload

    Args:
        data: Decoded JSON body

    Returns:
        TokenResponse with trimmed tokens

    Raises:
        InvalidTokenResponse: If any required field is missing or malformed
    """
    if not isinstance(data, dict):
        raise InvalidTokenResponse("Invalid Spotify token response: must be an object")

    access_token = data.get("access_token")
    if not isinstance(access_token, str) or not access_token.strip():
        raise InvalidTokenResponse(
            "Invalid Spotify token response: access_token must be a non-empty string"
        )

    if data.get("token_type") != "Bearer":
        raise InvalidTokenResponse('Invalid Spotify token response: token_type must be "Bearer"')

    scope = data.get("scope")
    if not isinstance(scope, str):
        raise InvalidTokenResponse("Invalid Spotify token response: scope must be a string")

    expires_in = data.get("expires_in")
    if not _is_number(expires_in) or expires_in <= 0:
        raise InvalidTokenResponse(
            "Invalid Spotify token response: expires_in must be a positive number"
        )

    refresh_token = data.get("refresh_token")
    if refresh_token is not None:
        if not isinstance(refresh_token, str) or not refresh_token.strip():
            raise InvalidTokenResponse(
                "Invalid Spotify token response: refresh_token must be a non-empty string if provided"
            )
        refresh_token = refresh_token.strip()

    return TokenResponse(
        access_token=access_token.strip(),
        token_type="Bearer",
        scope=scope,
        expires_in=expires_in,
        refresh_token=refresh_token,
    )


def parse_user_profile(data: Any) -> UserProfile:
    """Validate a profile endpoint payload

    Raises:
        InvalidProfile: If any required field is missing or malformed
    """
    if not isinstance(data, dict):
        raise InvalidProfile("Invalid Spotify user profile: must be an object")

    for field in ("id", "email", "product"):
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            raise InvalidProfile(f"Invalid Spotify user profile: {field} must be a non-empty string")

    display_name = data.get("display_name")
    # Spotify reports null for accounts without a display name
    if display_name is None:
        display_name = ""
    if not isinstance(display_name, str):
        raise InvalidProfile("Invalid Spotify user profile: display_name must be a string")

    return UserProfile(
        id=data["id"].strip(),
        display_name=display_name,
        email=data["email"].strip(),
        product=data["product"].strip(),
    )
