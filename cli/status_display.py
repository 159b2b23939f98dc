"""Status display functionality for CLI"""

from typing import Any, Dict, Optional

from rich.table import Table

from spotify_oauth import AuthConfig, UserProfile

STATUS_STYLES = {
    "VALID": "green",
    "EXPIRED": "yellow",
    "NO AUTH": "red",
}


def get_auth_status(status: Dict[str, Any]) -> tuple[str, str]:
    """
    Summarise a gate status dict

    Args:
        status: Result of ``gate.status()``

    Returns:
        Tuple of (status, detail_message)
    """
    if not status["has_tokens"]:
        return "NO AUTH", "No tokens available"

    if status["is_expired"]:
        if status["has_refresh_token"]:
            return "EXPIRED", "Token expired, will refresh on next use"
        return "EXPIRED", "Token expired, please login again"

    return "VALID", f"Expires in {status['time_until_expiry']}"


def show_token_status(status: Dict[str, Any], console, config: Optional[AuthConfig] = None):
    """
    Display detailed session status

    Args:
        status: Result of ``gate.status()``
        console: Rich console for output
        config: Active configuration, for storage locations
    """
    auth_status, auth_detail = get_auth_status(status)
    style = STATUS_STYLES.get(auth_status, "white")
    console.print(f"Status: [{style}]{auth_status}[/] ({auth_detail})")

    table = Table(title="Session Details")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("State", status["state"])
    table.add_row("Has Tokens", "Yes" if status["has_tokens"] else "No")
    table.add_row("Is Expired", "Yes" if status["is_expired"] else "No")

    if status["expires_at"]:
        table.add_row("Expires At", status["expires_at"])
        table.add_row("Time Until Expiry", status["time_until_expiry"])
    if status["scope"]:
        table.add_row("Scope", status["scope"])

    table.add_row("Refresh Token", "Yes" if status["has_refresh_token"] else "No")
    if status["entitled"] is not None:
        table.add_row("Entitled", "Yes" if status["entitled"] else "No")
    if status.get("mock"):
        table.add_row("Mode", "mock")

    if config is not None:
        table.add_row("Cookie Jar", str(config.cookie_file))
        table.add_row("Token Store", str(config.token_file))

    console.print(table)


def show_profile(profile: UserProfile, console, required_tier: str):
    """Display the signed-in user's profile"""
    table = Table(title="Spotify Account")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("User ID", profile.id)
    table.add_row("Display Name", profile.display_name or "-")
    table.add_row("Email", profile.email)

    entitled = profile.product.lower() == required_tier.lower()
    product_style = "green" if entitled else "yellow"
    table.add_row("Product", f"[{product_style}]{profile.product}[/]")

    console.print(table)
    if not entitled:
        console.print(f"[yellow]Playback features require Spotify {required_tier.title()}[/yellow]")
