"""Server handlers for CLI"""

from typing import Optional

from server import AuthServer
from spotify_oauth import AuthConfig


def serve(config: AuthConfig, console, bind_address: Optional[str] = None, port: Optional[int] = None) -> int:
    """
    Run the local server in the foreground until interrupted

    Args:
        config: Validated configuration
        console: Rich console for output
        bind_address: Override for BIND_ADDRESS
        port: Override for PORT
    """
    kwargs = {"config": config, "bind_address": bind_address}
    if port is not None:
        kwargs["port"] = port
    auth_server = AuthServer(**kwargs)

    console.print(
        f"\n[bold green]✓ Server starting on http://{auth_server.bind_address}:{auth_server.port}[/bold green]"
    )
    console.print(f"[dim]Sign in at http://{auth_server.bind_address}:{auth_server.port}/auth/login[/dim]\n")
    auth_server.run()
    return 0
