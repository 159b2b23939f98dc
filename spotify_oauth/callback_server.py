"""
Local loopback listener for the OAuth redirect
"""
import asyncio
import logging
from html import escape
from typing import Optional
from urllib.parse import urlparse

from aiohttp import web

from .errors import AuthError, EntitlementRequired

logger = logging.getLogger(__name__)

SUCCESS_PAGE = """
<html>
    <body>
        <h1>Authentication Successful!</h1>
        <p>You can now close this window and return to the terminal.</p>
        <script>
            setTimeout(function() {
                window.close();
            }, 2000);
        </script>
    </body>
</html>
"""

FAILURE_PAGE = """
<html>
    <body>
        <h1>Authentication Failed</h1>
        <p>Error: {code}</p>
        <p>{message}</p>
        <p>You can close this window.</p>
    </body>
</html>
"""


class CallbackOutcome:
    """What happened on the redirect: success, or the typed failure"""

    def __init__(self, error: Optional[AuthError] = None):
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None


class OAuthCallbackServer:
    """Listens on the redirect URI and hands the parameters to the session gate

    State verification is left to the gate's callback processing.
    """

    def __init__(self, gate, redirect_uri: str):
        parsed = urlparse(redirect_uri)
        self.gate = gate
        self.host = parsed.hostname or "127.0.0.1"
        self.port = parsed.port or (443 if parsed.scheme == "https" else 80)
        self.path = parsed.path or "/"
        self.outcome: Optional[CallbackOutcome] = None
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self._event = asyncio.Event()

        self.app.router.add_get(self.path, self._handle_callback)

    async def _handle_callback(self, request: web.Request) -> web.Response:
        """Handle OAuth callback request"""
        query = request.query
        try:
            await self.gate.handle_callback(
                query.get("code"),
                query.get("state"),
                error=query.get("error"),
                error_description=query.get("error_description"),
            )
        except AuthError as e:
            logger.warning(f"OAuth callback failed: {e.code}")
            self.outcome = CallbackOutcome(e)
            self._event.set()
            status = 403 if isinstance(e, EntitlementRequired) else 400
            return web.Response(
                text=FAILURE_PAGE.format(code=escape(e.code), message=escape(e.message)),
                content_type="text/html",
                status=status,
            )

        self.outcome = CallbackOutcome()
        self._event.set()
        return web.Response(text=SUCCESS_PAGE, content_type="text/html")

    async def start(self) -> None:
        """Start the callback server"""
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        site = web.TCPSite(self.runner, host=self.host, port=self.port)
        await site.start()
        logger.info(f"OAuth callback server listening on {self.host}:{self.port}{self.path}")

    async def wait_for_callback(self, timeout: float = 300) -> Optional[CallbackOutcome]:
        """
        Wait for the OAuth redirect.

        Args:
            timeout: Maximum time to wait in seconds (default 5 minutes)

        Returns:
            CallbackOutcome, or None on timeout
        """
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
            return self.outcome
        except asyncio.TimeoutError:
            logger.warning(f"OAuth callback timeout after {timeout} seconds")
            return None

    async def stop(self) -> None:
        """Stop the callback server"""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None


async def start_callback_server(gate, redirect_uri: str) -> OAuthCallbackServer:
    """Start a loopback listener for ``redirect_uri``"""
    server = OAuthCallbackServer(gate, redirect_uri)
    await server.start()
    return server
