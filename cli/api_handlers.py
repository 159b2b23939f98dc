"""Spotify Web API handlers for CLI"""

from rich.table import Table

from spotify_oauth import NotAuthenticated
from web_api import SpotifyWebApi, WebApiError


def _format_duration(duration_ms: int) -> str:
    seconds = duration_ms // 1000
    return f"{seconds // 60}:{seconds % 60:02d}"


async def search(gate, console, query: str, limit: int = 10) -> int:
    """
    Search tracks and print them as a table

    Returns:
        Process exit code
    """
    api = SpotifyWebApi(gate)
    try:
        tracks = await api.search_tracks(query, limit=limit)
    except NotAuthenticated:
        console.print("[red]Not logged in - run 'walkup-auth login' first[/red]")
        return 1
    except WebApiError as e:
        console.print(f"[red]ERROR:[/red] {e.message}")
        return 1
    finally:
        await api.aclose()

    if not tracks:
        console.print("[yellow]No tracks found[/yellow]")
        return 0

    table = Table(title=f"Results for '{query}'")
    table.add_column("Track", style="cyan")
    table.add_column("Artists")
    table.add_column("Album", style="dim")
    table.add_column("Length", justify="right")
    table.add_column("URI", style="dim")

    for track in tracks:
        table.add_row(
            track.name,
            ", ".join(track.artists),
            track.album,
            _format_duration(track.duration_ms),
            track.uri,
        )

    console.print(table)
    return 0
