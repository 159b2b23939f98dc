"""
AuthServer class for CLI control of the FastAPI application.
"""
import logging
from typing import Optional

import uvicorn

from settings import PORT, LOG_LEVEL, BIND_ADDRESS
from spotify_oauth import AuthConfig, create_session_gate
from utils.debug_console import configure_debug_logging
from .app import create_app

logger = logging.getLogger(__name__)


def _no_navigate(url: str) -> bool:
    """The browser is redirected by /auth/login instead"""
    return True


class AuthServer:
    """Local auth and playback server wrapper for CLI control"""

    def __init__(
        self,
        config: Optional[AuthConfig] = None,
        debug: bool = False,
        bind_address: Optional[str] = None,
        port: int = PORT,
    ):
        self.server = None
        self.uvicorn_config = None
        self.debug = debug
        self.bind_address = bind_address or BIND_ADDRESS
        self.port = port

        if debug:
            configure_debug_logging()

        self.config = (config or AuthConfig.from_settings()).validate()
        self.gate = create_session_gate(self.config, navigate=_no_navigate)
        self.gate.init()
        self.app = create_app(self.gate)

    def run(self):
        """Run the server (blocking)"""
        logger.info(f"Starting Walkup Auth server on http://{self.bind_address}:{self.port}")
        logger.info("Available endpoints: /auth/login, /callback, /auth/status, /v1/search, /v1/player")
        self.uvicorn_config = uvicorn.Config(
            self.app,
            host=self.bind_address,
            port=self.port,
            log_level=LOG_LEVEL,
            access_log=False
        )
        self.server = uvicorn.Server(self.uvicorn_config)
        self.server.run()

    def stop(self):
        """Stop the server"""
        if self.server:
            self.server.should_exit = True
