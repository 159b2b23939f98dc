"""Token endpoint requests (authorization code and refresh grants)"""

import json
import logging
from typing import Dict, Optional

import httpx

from .config import AuthConfig
from .errors import (
    RefreshNetworkError,
    RefreshTokenInvalid,
    TokenExchangeFailed,
)
from .models import TokenResponse
from .validators import parse_token_response

logger = logging.getLogger(__name__)

FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


def _error_detail(response: httpx.Response) -> Optional[str]:
    """Extract the OAuth error code from an error response, if any"""
    try:
        payload = response.json()
    except (json.JSONDecodeError, ValueError):
        return None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, str):
            return error
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
    return None


async def _post_form(client: httpx.AsyncClient, url: str, data: Dict[str, str]) -> httpx.Response:
    return await client.post(url, data=data, headers=FORM_HEADERS)


async def exchange_code(
    client: httpx.AsyncClient,
    config: AuthConfig,
    code: str,
    code_verifier: str,
) -> TokenResponse:
    """Exchange an authorization code for tokens

    Args:
        client: HTTP client to use
        config: Auth configuration (client id, redirect URI, endpoint)
        code: Authorization code from the callback
        code_verifier: PKCE verifier of the matching session

    Returns:
        Validated token response

    Raises:
        TokenExchangeFailed: On transport failure or a non-2xx status
        InvalidTokenResponse: If the payload is malformed
    """
    form = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": config.redirect_uri,
        "client_id": config.client_id,
        "code_verifier": code_verifier,
    }

    try:
        response = await _post_form(client, config.token_endpoint, form)
    except httpx.RequestError as e:
        logger.error(f"Token exchange request failed: {e}")
        raise TokenExchangeFailed(None, str(e)) from e

    if not response.is_success:
        error = _error_detail(response)
        logger.error(f"Token exchange failed with status {response.status_code}: {error}")
        raise TokenExchangeFailed(response.status_code, error)

    try:
        payload = response.json()
    except (json.JSONDecodeError, ValueError):
        payload = None

    return parse_token_response(payload)


async def request_refresh(
    client: httpx.AsyncClient,
    config: AuthConfig,
    refresh_token: str,
) -> TokenResponse:
    """Exchange a refresh token for a new access token

    Raises:
        RefreshTokenInvalid: On HTTP 400/401 (a full login is required)
        RefreshNetworkError: On transport failure or any other non-2xx status
        InvalidTokenResponse: If the payload is malformed
    """
    form = {
        "grant_type": "refresh_token",
        "refresh_token": refresh_token,
        "client_id": config.client_id,
    }

    try:
        response = await _post_form(client, config.token_endpoint, form)
    except httpx.RequestError as e:
        logger.warning(f"Token refresh request failed: {e}")
        raise RefreshNetworkError(f"Token refresh request failed: {e}") from e

    if response.status_code in (400, 401):
        error = _error_detail(response)
        logger.error(f"Token refresh rejected with status {response.status_code}: {error}")
        raise RefreshTokenInvalid()

    if not response.is_success:
        logger.warning(f"Token refresh failed with status {response.status_code}")
        raise RefreshNetworkError(
            f"Token refresh failed: {response.status_code}", status_code=response.status_code
        )

    try:
        payload = response.json()
    except (json.JSONDecodeError, ValueError):
        payload = None

    return parse_token_response(payload)
