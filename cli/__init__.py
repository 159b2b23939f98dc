"""CLI package for walkup-auth

Subcommands for signing in with Spotify, inspecting the session and
running the local server.
"""

from cli.main import main

__all__ = [
    "main",
]
