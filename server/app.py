"""
FastAPI application factory and error mapping.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from spotify_oauth.errors import (
    AuthError,
    EntitlementRequired,
    InvalidProfile,
    InvalidTokenResponse,
    NotAuthenticated,
    ProfileUnavailable,
    RefreshNetworkError,
    RefreshTokenInvalid,
    StorageUnavailable,
    TokenExchangeFailed,
)
from web_api import SpotifyWebApi, WebApiError
from .middleware import log_requests_middleware
from .models import error_body
from .endpoints import health_router, auth_router, player_router

logger = logging.getLogger(__name__)

# Callback and input errors not listed here map to 400
AUTH_ERROR_STATUS = {
    NotAuthenticated: 401,
    RefreshTokenInvalid: 401,
    EntitlementRequired: 403,
    StorageUnavailable: 500,
    InvalidTokenResponse: 502,
    TokenExchangeFailed: 502,
    InvalidProfile: 502,
    ProfileUnavailable: 502,
    RefreshNetworkError: 503,
}


def status_for(error: AuthError) -> int:
    for error_type, status in AUTH_ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status
    return 400


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    status = status_for(exc)
    logger.warning(f"{request.method} {request.url.path} failed: {exc.code}")
    return JSONResponse(status_code=status, content=error_body(exc.code, exc.message))


async def web_api_error_handler(request: Request, exc: WebApiError) -> JSONResponse:
    # Transport failures carry status 0
    status = exc.status if exc.status >= 400 else 502
    return JSONResponse(status_code=status, content=error_body("web_api_error", exc.message))


def create_app(gate, web_api: SpotifyWebApi = None) -> FastAPI:
    """
    Build the FastAPI application around a session gate.

    Args:
        gate: Initialised SessionGate (or MockSessionGate)
        web_api: Web API client, created from the gate when omitted

    Returns:
        FastAPI app; the lifespan starts the refresh scheduler when configured
        and releases the gate's resources on shutdown
    """
    web_api = web_api or SpotifyWebApi(gate)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if gate.config.proactive_refresh and gate.is_authenticated():
            gate.start_refresh_scheduler()
        yield
        await web_api.aclose()
        await gate.aclose()

    app = FastAPI(title="Walkup Auth", version="1.0.0", lifespan=lifespan)
    app.state.gate = gate
    app.state.web_api = web_api

    app.middleware("http")(log_requests_middleware)
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(WebApiError, web_api_error_handler)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(player_router)

    logger.debug("FastAPI application initialized with all routers and middleware")
    return app
