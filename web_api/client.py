"""Spotify Web API operations gated on an authenticated session"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from settings import API_BASE, CONNECT_TIMEOUT, REQUEST_TIMEOUT
from spotify_oauth.errors import NotAuthenticated
from .models import PlaybackState, Track

logger = logging.getLogger(__name__)

MAX_SEARCH_LIMIT = 50
SEARCH_MARKET = "US"

STATUS_MESSAGES = {
    401: "Spotify authentication expired. Please log in again.",
    403: "Access forbidden. Please check your Spotify Premium subscription.",
    429: "Too many requests to Spotify API. Please try again later.",
}


class WebApiError(Exception):
    """Spotify Web API returned an error status"""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except (json.JSONDecodeError, ValueError):
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return f"Spotify API error: {error['message']}"

    if response.status_code in STATUS_MESSAGES:
        return STATUS_MESSAGES[response.status_code]
    if response.status_code >= 500:
        return "Spotify service is temporarily unavailable. Please try again later."
    return f"Spotify API error: {response.status_code}"


class SpotifyWebApi:
    """Search and playback control for the signed-in user

    Every call obtains its bearer token from the session gate, so tokens are
    refreshed transparently and a lost session surfaces as NotAuthenticated.
    """

    def __init__(self, gate, client: Optional[httpx.AsyncClient] = None, api_base: str = API_BASE):
        self.gate = gate
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT)
        )
        self.api_base = api_base.rstrip("/")

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Optional[Any]:
        access_token = await self.gate.get_access_token()
        if not access_token:
            raise NotAuthenticated("No valid access token available for Spotify API")

        try:
            response = await self.client.request(
                method,
                f"{self.api_base}{path}",
                params={k: v for k, v in (params or {}).items() if v is not None},
                json=json_body,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.RequestError as e:
            logger.error(f"Spotify API request failed: {method} {path}: {e}")
            raise WebApiError(0, f"Network error: {e}") from e

        if not response.is_success:
            message = _error_message(response)
            logger.warning(f"Spotify API {method} {path} returned {response.status_code}")
            raise WebApiError(response.status_code, message)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except (json.JSONDecodeError, ValueError):
            return None

    async def search_tracks(self, query: str, limit: int = 20) -> List[Track]:
        """Search tracks playable in the US market

        Args:
            query: Free-text search; blank queries return no results
            limit: Maximum results (capped at 50)

        Returns:
            Tracks, deduplicated by id in result order
        """
        if not query or not query.strip():
            return []

        data = await self._request(
            "GET",
            "/search",
            params={
                "q": query,
                "type": "track",
                "limit": min(limit, MAX_SEARCH_LIMIT),
                "market": SEARCH_MARKET,
            },
        )

        tracks = (data or {}).get("tracks")
        if not isinstance(tracks, dict) or not isinstance(tracks.get("items"), list):
            raise WebApiError(0, "Invalid search response: missing tracks")

        seen = set()
        results = []
        for item in tracks["items"]:
            if not item or not item.get("id") or item["id"] in seen:
                continue
            seen.add(item["id"])
            results.append(Track.from_api(item))
        return results

    async def get_playback_state(self) -> Optional[PlaybackState]:
        """Current playback, or None when nothing is active"""
        data = await self._request("GET", "/me/player")
        if not data:
            return None
        return PlaybackState.from_api(data)

    async def play(self, uris: List[str], device_id: Optional[str] = None, position_ms: int = 0) -> None:
        """Start playing ``uris`` from ``position_ms``"""
        if position_ms < 0:
            raise ValueError("position_ms must be non-negative")
        await self._request(
            "PUT",
            "/me/player/play",
            params={"device_id": device_id},
            json_body={"uris": list(uris), "position_ms": position_ms},
        )

    async def pause(self, device_id: Optional[str] = None) -> None:
        await self._request("PUT", "/me/player/pause", params={"device_id": device_id})

    async def seek(self, position_ms: int, device_id: Optional[str] = None) -> None:
        if position_ms < 0:
            raise ValueError("position_ms must be non-negative")
        await self._request(
            "PUT",
            "/me/player/seek",
            params={"position_ms": position_ms, "device_id": device_id},
        )
