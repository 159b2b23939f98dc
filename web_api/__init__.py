"""
Spotify Web API client module
"""
from .models import Track, PlaybackState
from .client import SpotifyWebApi, WebApiError

__all__ = [
    "Track",
    "PlaybackState",
    "SpotifyWebApi",
    "WebApiError",
]
