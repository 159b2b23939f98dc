"""CLI entry point and argument parsing"""

import argparse
import asyncio
import sys
from typing import List, Optional

from rich.console import Console

from spotify_oauth import AuthConfig, AuthError, create_session_gate
from cli.debug_setup import setup_debug_console
from cli import auth_handlers, api_handlers, server_handlers
from cli.status_display import show_token_status


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="walkup-auth", description="Spotify sign-in and playback gate")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    login_parser = commands.add_parser("login", help="Sign in with Spotify in the browser")
    login_parser.add_argument("--timeout", type=float, default=300, help="Seconds to wait for the redirect")

    commands.add_parser("status", help="Show session status")
    commands.add_parser("whoami", help="Show the signed-in Spotify account")
    commands.add_parser("refresh", help="Refresh the access token now")

    logout_parser = commands.add_parser("logout", help="Clear stored credentials")
    logout_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    search_parser = commands.add_parser("search", help="Search Spotify tracks")
    search_parser.add_argument("query", nargs="+", help="Search terms")
    search_parser.add_argument("--limit", type=int, default=10, help="Maximum results (max 50)")

    serve_parser = commands.add_parser("serve", help="Run the local auth and playback server")
    serve_parser.add_argument("--bind", "-b", default=None, help="Override bind address (default: from config)")
    serve_parser.add_argument("--port", "-p", type=int, default=None, help="Override port (default: from config)")

    return parser


async def run_command(args: argparse.Namespace, config: AuthConfig, console) -> int:
    """Run one session command against a freshly loaded gate"""
    async with create_session_gate(config) as gate:
        try:
            if args.command == "login":
                return await auth_handlers.login(gate, config, console, timeout=args.timeout)
            if args.command == "status":
                show_token_status(gate.status(), console, config)
                return 0
            if args.command == "whoami":
                return await auth_handlers.whoami(gate, config, console)
            if args.command == "refresh":
                return await auth_handlers.refresh_token(gate, config, console)
            if args.command == "logout":
                return auth_handlers.logout(gate, console, assume_yes=args.yes)
            if args.command == "search":
                return await api_handlers.search(gate, console, " ".join(args.query), limit=args.limit)
        except AuthError as e:
            console.print(f"[red]ERROR ({e.code}):[/red] {e.message}")
            return 1
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI"""
    global console

    args = build_parser().parse_args(argv)
    console = setup_debug_console(args.debug, args.command)

    try:
        config = AuthConfig.from_settings().validate()
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        console.print("Set SPOTIFY_CLIENT_ID (or MOCK_AUTH=true) in the environment or .env")
        return 2

    try:
        if args.command == "serve":
            return server_handlers.serve(config, console, bind_address=args.bind, port=args.port)
        return asyncio.run(run_command(args, config, console))

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        console.print("Goodbye!")
        return 130
    except Exception as e:
        console.print(f"\n[red]Fatal error:[/red] {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
