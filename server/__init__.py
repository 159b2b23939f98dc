"""
Walkup Auth local HTTP server package.

Serves the OAuth redirect URI, session status and gated Spotify Web API
operations on a loopback address.
"""
from .app import create_app
from .server import AuthServer

__version__ = "1.0.0"

__all__ = [
    'AuthServer',
    'create_app',
]
