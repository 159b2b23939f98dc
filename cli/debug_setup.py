"""Logging and console setup for CLI"""

from rich.console import Console

from utils.debug_console import configure_debug_logging, configure_logging, create_debug_console, DEBUG_LOG_FILE


def setup_debug_console(debug: bool, command: str) -> Console:
    """
    Configure logging and return the console for this run

    Args:
        debug: Whether debug mode is enabled
        command: The CLI command being run

    Returns:
        Console instance (either regular or debug-enabled)
    """
    if not debug:
        configure_logging("warning")
        return Console()

    debug_logger = configure_debug_logging(DEBUG_LOG_FILE)
    console = create_debug_console(debug_enabled=True, debug_logger=debug_logger)
    debug_logger.debug("[CLI] ===== CLI SESSION STARTED =====")
    debug_logger.debug(f"[CLI] Command: {command}")
    console.print(f"[yellow]Debug mode enabled - verbose logging will be written to {DEBUG_LOG_FILE}[/yellow]")
    return console
