"""Authentication handlers for CLI"""

import logging

from rich.prompt import Confirm

from spotify_oauth import (
    AuthConfig,
    EntitlementRequired,
    InvalidTokenResponse,
    RefreshNetworkError,
    start_callback_server,
)
from cli.status_display import get_auth_status, show_profile

logger = logging.getLogger(__name__)


async def login(gate, config: AuthConfig, console, timeout: float = 300) -> int:
    """
    Run the login flow through the loopback callback listener

    Args:
        gate: Session gate
        config: Active configuration (redirect URI to listen on)
        console: Rich console for output
        timeout: Seconds to wait for the browser redirect

    Returns:
        Process exit code
    """
    console.print("Starting Spotify login flow...")

    if config.mock_auth:
        gate.login()
        console.print("[green]✓ Mock authentication enabled, signed in as Mock User[/green]")
        return 0

    try:
        callback_server = await start_callback_server(gate, config.redirect_uri)
    except OSError as e:
        console.print(f"[red]✗ Cannot listen on {config.redirect_uri}: {e}[/red]")
        console.print("If the server is running, open /auth/login in your browser instead.")
        return 1

    try:
        auth_url = gate.login()
        console.print("\n[bold]Step 1:[/bold] Complete the login process in your browser")
        console.print("[dim]If the browser did not open, visit this URL:[/dim]")
        console.print(auth_url, soft_wrap=True)
        console.print(f"\n[bold]Step 2:[/bold] Waiting for the redirect (up to {int(timeout)}s)...")

        outcome = await callback_server.wait_for_callback(timeout=timeout)
    finally:
        await callback_server.stop()

    if outcome is None:
        console.print("[red]✗ Authentication timed out[/red]")
        return 1

    if not outcome.ok:
        if isinstance(outcome.error, EntitlementRequired):
            console.print(f"[yellow]Signed in, but {outcome.error.message}[/yellow]")
        else:
            console.print(f"[red]✗ Authentication failed:[/red] {outcome.error.message}")
        return 1

    console.print("\n[bold green]✓ Authentication successful![/bold green]")
    profile = await gate.get_user_info()
    if profile is not None:
        console.print(f"[dim]Signed in as {profile.display_name or profile.id}[/dim]")
    return 0


async def whoami(gate, config: AuthConfig, console) -> int:
    """Show the signed-in user's profile"""
    profile = await gate.get_user_info()
    if profile is None:
        console.print("[red]Not logged in - run 'walkup-auth login' first[/red]")
        return 1
    show_profile(profile, console, config.required_subscription_tier)
    return 0


async def refresh_token(gate, config: AuthConfig, console) -> int:
    """
    Force an access token refresh

    Returns:
        Process exit code
    """
    if config.mock_auth:
        console.print("[yellow]Mock mode: nothing to refresh[/yellow]")
        return 0

    status = gate.status()
    if not status["has_refresh_token"]:
        console.print("[red]No refresh token available - please login first[/red]")
        return 1

    console.print("Attempting to refresh token...")
    try:
        tokens = await gate.refresh()
    except (RefreshNetworkError, InvalidTokenResponse) as e:
        console.print(f"[red]ERROR:[/red] Token refresh failed: {e.message}")
        console.print("Check your connection and try again")
        return 1

    if tokens is None:
        console.print("[red]Token refresh failed - please login again[/red]")
        console.print("This usually happens when the refresh token has been revoked.")
        return 1

    auth_status, auth_detail = get_auth_status(gate.status())
    console.print("[green]Token refreshed successfully![/green]")
    console.print(f"Status: [{('green' if auth_status == 'VALID' else 'yellow')}]{auth_status}[/] ({auth_detail})")
    return 0


def logout(gate, console, assume_yes: bool = False) -> int:
    """
    Clear stored credentials

    Args:
        gate: Session gate
        console: Rich console for output
        assume_yes: Skip the confirmation prompt
    """
    if not assume_yes and not Confirm.ask("Are you sure you want to clear all stored credentials?"):
        console.print("Logout cancelled")
        return 0

    gate.logout()
    console.print("[green]Credentials cleared successfully[/green]")
    return 0
