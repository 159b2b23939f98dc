"""
Search and playback control endpoints backed by the Spotify Web API.
"""
import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Query, Request, Response

from ..models import (
    PauseRequest,
    PlaybackResponse,
    PlayRequest,
    SearchResponse,
    SeekRequest,
    TrackResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


@router.get("/search", response_model=SearchResponse)
async def search(
    request: Request,
    q: str = Query("", description="Free-text track search"),
    limit: int = Query(20, ge=1, le=50),
):
    tracks = await request.app.state.web_api.search_tracks(q, limit=limit)
    return SearchResponse(query=q, tracks=[TrackResponse(**asdict(track)) for track in tracks])


@router.get("/player", response_model=PlaybackResponse)
async def playback_state(request: Request):
    """Current playback, ``active`` is false when nothing is playing"""
    playback = await request.app.state.web_api.get_playback_state()
    if playback is None:
        return PlaybackResponse(active=False)
    return PlaybackResponse(
        active=True,
        is_playing=playback.is_playing,
        progress_ms=playback.progress_ms,
        device_id=playback.device_id,
        device_name=playback.device_name,
        track=TrackResponse(**asdict(playback.track)) if playback.track else None,
    )


@router.put("/player/play", status_code=204)
async def play(request: Request, body: PlayRequest):
    await request.app.state.web_api.play(body.uris, device_id=body.device_id, position_ms=body.position_ms)
    return Response(status_code=204)


@router.put("/player/pause", status_code=204)
async def pause(request: Request, body: Optional[PauseRequest] = None):
    await request.app.state.web_api.pause(device_id=body.device_id if body else None)
    return Response(status_code=204)


@router.put("/player/seek", status_code=204)
async def seek(request: Request, body: SeekRequest):
    await request.app.state.web_api.seek(body.position_ms, device_id=body.device_id)
    return Response(status_code=204)
