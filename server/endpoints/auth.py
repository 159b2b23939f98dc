"""
Authentication endpoints: login redirect, callback, status, logout and profile.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from spotify_oauth.errors import NotAuthenticated
from ..models import AuthStatusResponse, ProfileResponse

logger = logging.getLogger(__name__)

router = APIRouter()

CALLBACK_SUCCESS_PAGE = """
<html>
    <body>
        <h1>Authentication Successful!</h1>
        <p>You can now close this window.</p>
    </body>
</html>
"""


@router.get("/auth/status", response_model=AuthStatusResponse)
async def auth_status(request: Request):
    """Get session status without exposing secrets"""
    return request.app.state.gate.status()


@router.get("/auth/login")
async def auth_login(request: Request):
    """Start a login attempt and redirect the browser to Spotify"""
    auth_url = request.app.state.gate.login()
    return RedirectResponse(auth_url, status_code=302)


@router.get("/callback", response_class=HTMLResponse)
async def auth_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
):
    """Redirect URI handler; failures are rendered by the AuthError handler"""
    await request.app.state.gate.handle_callback(
        code, state, error=error, error_description=error_description
    )
    return HTMLResponse(CALLBACK_SUCCESS_PAGE)


@router.post("/auth/logout")
async def auth_logout(request: Request):
    request.app.state.gate.logout()
    return {"status": "logged_out"}


@router.get("/auth/me", response_model=ProfileResponse)
async def auth_me(request: Request):
    """Current user's profile"""
    profile = await request.app.state.gate.get_user_info()
    if profile is None:
        raise NotAuthenticated("Not logged in to Spotify")
    return ProfileResponse(
        id=profile.id,
        display_name=profile.display_name,
        email=profile.email,
        product=profile.product,
    )
