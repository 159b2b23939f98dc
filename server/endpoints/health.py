"""
Liveness endpoint.
"""
import time

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Liveness plus whether a session is currently held"""
    gate = request.app.state.gate
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "authenticated": gate.is_authenticated(),
        "mock": gate.config.mock_auth,
    }
