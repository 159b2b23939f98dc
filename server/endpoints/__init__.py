"""
Endpoint routers for the local HTTP surface.
"""
from .health import router as health_router
from .auth import router as auth_router
from .player import router as player_router

__all__ = [
    'health_router',
    'auth_router',
    'player_router',
]
