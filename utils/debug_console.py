"""Debug logging setup and a Rich console that mirrors its output to the debug log.

With ``--debug`` every log record goes to ``walkup_auth_debug.log`` and stderr,
and anything printed through the console also lands in the log as plain text.
"""

import io
import logging
import os
import re
from typing import Optional

from rich.console import Console as RichConsole

DEBUG_LOG_FILE = "walkup_auth_debug.log"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')


class DebugCapturingConsole(RichConsole):
    """Rich console that also writes a plain-text copy of each print to a logger"""

    def __init__(self, debug_logger: Optional[logging.Logger] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.debug_logger = debug_logger
        self._log_prefix = "[CONSOLE] "

    def print(self, *objects, **kwargs):
        super().print(*objects, **kwargs)

        if self.debug_logger and self.debug_logger.isEnabledFor(logging.DEBUG):
            plain_text = self._render_to_plain_text(*objects, **kwargs)
            if plain_text.strip():
                self.debug_logger.debug(f"{self._log_prefix}{plain_text}")

    def _render_to_plain_text(self, *objects, **kwargs) -> str:
        """Render objects the way the terminal would, minus markup and colour"""
        buffer = io.StringIO()
        plain_console = RichConsole(
            file=buffer,
            force_terminal=False,
            width=self.width,
            legacy_windows=False
        )
        plain_console.print(*objects, **kwargs)
        return ANSI_ESCAPE.sub('', buffer.getvalue()).rstrip()


def create_debug_console(debug_enabled: bool = False,
                        debug_logger: Optional[logging.Logger] = None) -> RichConsole:
    """
    Create the console for the current mode.

    Args:
        debug_enabled: Whether debug mode is enabled
        debug_logger: Logger that receives captured console output

    Returns:
        DebugCapturingConsole if debug enabled, regular Console otherwise
    """
    if debug_enabled and debug_logger:
        return DebugCapturingConsole(debug_logger=debug_logger)
    return RichConsole()


def setup_debug_logger(log_file: str = DEBUG_LOG_FILE) -> logging.Logger:
    """Dedicated non-propagating logger for captured console output"""
    logger = logging.getLogger("debug_console")
    logger.setLevel(logging.DEBUG)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(message)s'))
    logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def configure_debug_logging(log_file: str = DEBUG_LOG_FILE) -> logging.Logger:
    """
    Route all log records at DEBUG level to ``log_file`` and stderr.

    Args:
        log_file: Debug log path, appended to

    Returns:
        Logger for console capture (see ``create_debug_console``)
    """
    log_file = os.path.abspath(log_file)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # httpcore traces every socket event at DEBUG
    logging.getLogger("httpcore").setLevel(logging.INFO)

    logging.getLogger(__name__).info(f"Debug logging enabled - appending to {log_file}")
    return setup_debug_logger(log_file)


def configure_logging(level: str = "info") -> None:
    """Plain stderr logging for normal runs"""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
