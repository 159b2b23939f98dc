"""Shared utilities package for walkup-auth"""

from .storage import (
    StorageError,
    StorageBackend,
    MemoryBackend,
    JsonFileBackend,
    CookieJarBackend,
)
from .debug_console import (
    DebugCapturingConsole,
    create_debug_console,
    setup_debug_logger,
    configure_debug_logging,
    configure_logging,
)

__all__ = [
    "StorageError",
    "StorageBackend",
    "MemoryBackend",
    "JsonFileBackend",
    "CookieJarBackend",
    "DebugCapturingConsole",
    "create_debug_console",
    "setup_debug_logger",
    "configure_debug_logging",
    "configure_logging",
]
