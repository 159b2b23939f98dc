"""
Pydantic models for the local HTTP surface.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ErrorBody(BaseModel):
    """Typed failure, ``code`` is stable across releases"""
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorBody


class AuthStatusResponse(BaseModel):
    """Session status without secrets"""
    state: str
    has_tokens: bool
    is_expired: bool
    expires_at: Optional[str] = None
    time_until_expiry: str
    scope: Optional[str] = None
    has_refresh_token: bool
    entitled: Optional[bool] = None
    mock: bool = False


class ProfileResponse(BaseModel):
    id: str
    display_name: str
    email: str
    product: str


class TrackResponse(BaseModel):
    id: str
    name: str
    artists: List[str]
    album: str
    album_art: str
    preview_url: str
    duration_ms: int
    uri: str


class SearchResponse(BaseModel):
    query: str
    tracks: List[TrackResponse]


class PlaybackResponse(BaseModel):
    """``active`` is false when no device is playing"""
    active: bool
    is_playing: bool = False
    progress_ms: int = 0
    device_id: Optional[str] = None
    device_name: Optional[str] = None
    track: Optional[TrackResponse] = None


class PlayRequest(BaseModel):
    uris: List[str] = Field(..., min_length=1)
    device_id: Optional[str] = None
    position_ms: int = Field(0, ge=0)


class PauseRequest(BaseModel):
    device_id: Optional[str] = None


class SeekRequest(BaseModel):
    position_ms: int = Field(..., ge=0)
    device_id: Optional[str] = None


def error_body(code: str, message: str) -> Dict[str, Any]:
    return ErrorResponse(error=ErrorBody(code=code, message=message)).model_dump()
