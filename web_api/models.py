"""Data models for Spotify Web API responses"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Preferred album art edge length in pixels
PREFERRED_ART_SIZE = 300


def select_album_art(images: List[Dict[str, Any]]) -> str:
    """Pick the image closest to 300px, preferring the larger one on ties"""
    if not images:
        return ""
    best = min(
        images,
        key=lambda image: (abs((image.get("height") or 0) - PREFERRED_ART_SIZE), -(image.get("height") or 0)),
    )
    return best.get("url", "")


@dataclass
class Track:
    """Track as used by the rest of the application

    Attributes:
        id: Spotify track id
        name: Track title
        artists: Artist names in credit order
        album: Album name
        album_art: Best-fit album art URL, empty when none
        preview_url: 30 second preview URL, empty when none
        duration_ms: Track length
        uri: Playable ``spotify:track:`` URI
    """
    id: str
    name: str
    artists: List[str] = field(default_factory=list)
    album: str = ""
    album_art: str = ""
    preview_url: str = ""
    duration_ms: int = 0
    uri: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Track":
        album = data.get("album") or {}
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            artists=[artist.get("name", "") for artist in data.get("artists") or []],
            album=album.get("name", ""),
            album_art=select_album_art(album.get("images") or []),
            preview_url=data.get("preview_url") or "",
            duration_ms=data.get("duration_ms") or 0,
            uri=data.get("uri", ""),
        )


@dataclass
class PlaybackState:
    """Current playback on the user's active device"""
    is_playing: bool
    progress_ms: int
    device_id: Optional[str] = None
    device_name: Optional[str] = None
    track: Optional[Track] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PlaybackState":
        device = data.get("device") or {}
        item = data.get("item")
        return cls(
            is_playing=bool(data.get("is_playing")),
            progress_ms=data.get("progress_ms") or 0,
            device_id=device.get("id"),
            device_name=device.get("name"),
            track=Track.from_api(item) if item and item.get("id") else None,
        )
