"""Settings lookup for walkup-auth

Values resolve in this order:
1. Process environment
2. ``.env`` file (``WALKUP_ENV_FILE`` overrides its location)
3. Defaults given at the call site

The default's type decides how an environment string is coerced.
"""

import logging
import os
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_FILE_VARIABLE = "WALKUP_ENV_FILE"
TRUTHY = ("true", "1", "yes", "on")


class ConfigLoader:
    """Reads typed settings from the environment after loading a .env file"""

    def __init__(self, env_path: Optional[str] = None):
        """
        Args:
            env_path: .env file to load; falls back to ``$WALKUP_ENV_FILE``,
                then ``.env`` in the working directory
        """
        self.env_path = Path(env_path or os.getenv(ENV_FILE_VARIABLE) or ".env")
        self.loaded = self._load_env_file()

    def _load_env_file(self) -> bool:
        if not self.env_path.is_file():
            logger.debug(f"No .env file at {self.env_path}, using environment and defaults")
            return False
        # Real environment variables win over the file
        load_dotenv(dotenv_path=self.env_path, override=False)
        logger.debug(f"Loaded settings from {self.env_path}")
        return True

    @staticmethod
    def _coerce(env_var: str, raw: str, default: Any) -> Any:
        if isinstance(default, bool):
            return raw.strip().lower() in TRUTHY
        if isinstance(default, (int, float)):
            try:
                return type(default)(raw.strip())
            except ValueError:
                logger.warning(f"Ignoring {env_var}={raw!r}: expected {type(default).__name__}, using {default}")
                return default
        return raw

    def get(self, env_var: str, default: Any) -> Any:
        """Look up ``env_var``, coerced to the type of ``default``

        String defaults starting with ``~/`` are expanded to the home directory.
        """
        raw = os.getenv(env_var)
        if raw is not None:
            return self._coerce(env_var, raw, default)

        if isinstance(default, str) and default.startswith("~/"):
            return str(Path(default).expanduser())
        return default

    def get_list(self, env_var: str, default: List[str]) -> List[str]:
        """Look up a list such as OAuth scopes, separated by whitespace or commas"""
        raw = os.getenv(env_var)
        if raw is None:
            return list(default)
        return raw.replace(",", " ").split()


_config_loader: Optional[ConfigLoader] = None


def get_config_loader() -> ConfigLoader:
    """Process-wide loader, created on first use"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader
