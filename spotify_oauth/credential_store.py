"""Dual-backend persistence for the token set and the pending PKCE session"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from utils.storage import CookieJarBackend, JsonFileBackend, StorageBackend, StorageError
from .config import AuthConfig
from .errors import StorageUnavailable
from .models import PKCESession, TokenSet, now_ms

logger = logging.getLogger(__name__)

COOKIE_NAMES = {
    "ACCESS_TOKEN": "spotify_access_token",
    "REFRESH_TOKEN": "spotify_refresh_token",
    "EXPIRES_AT": "spotify_expires_at",
    "SCOPE": "spotify_scope",
    "CODE_VERIFIER": "spotify_code_verifier",
    "STATE": "spotify_state",
}

TOKEN_KEYS = ("ACCESS_TOKEN", "REFRESH_TOKEN", "EXPIRES_AT", "SCOPE")
PKCE_KEYS = ("CODE_VERIFIER", "STATE")

# 10 minutes to complete the authorize redirect
PKCE_SESSION_TTL_SECONDS = 600
# Token fields stay as long as the refresh token can revive them
REFRESH_TOKEN_MAX_AGE_SECONDS = 30 * 24 * 3600


class CredentialStore:
    """Persists credentials to an ordered list of backends

    Writes fan out to every backend in priority order; a failing backend is
    logged and skipped, and ``StorageUnavailable`` is raised only when every
    backend failed. Reads return the first complete record in priority order.
    """

    def __init__(self, backends: Sequence[StorageBackend], clock: Callable[[], int] = now_ms):
        if not backends:
            raise ValueError("CredentialStore needs at least one backend")
        self.backends: List[StorageBackend] = list(backends)
        self._clock = clock

    @classmethod
    def from_config(cls, config: AuthConfig) -> "CredentialStore":
        """Cookie jar first, JSON key-value store as fallback"""
        return cls([
            CookieJarBackend(
                config.cookie_file,
                domain=config.cookie_domain,
                path_scope=config.base_path,
            ),
            JsonFileBackend(config.token_file),
        ])

    def available_backends(self) -> List[str]:
        """Names of the backends that pass a write/read/delete probe"""
        available = []
        for backend in self.backends:
            if backend.is_available():
                available.append(backend.name)
            else:
                logger.warning(f"Credential backend '{backend.name}' is not available")
        return available

    # Generic fan-out helpers

    def _write_all(self, what: str, names: Sequence[str], write: Callable[[StorageBackend], None]) -> None:
        failures = 0
        for backend in self.backends:
            try:
                write(backend)
            except StorageError as e:
                failures += 1
                logger.warning(f"Failed to write {what} to '{backend.name}': {e}")
                self._purge(backend, names)
        if failures == len(self.backends):
            logger.error(f"Failed to write {what} to every credential backend")
            raise StorageUnavailable(f"Could not persist {what}: all storage backends failed")

    @staticmethod
    def _purge(backend: StorageBackend, names: Sequence[str]) -> None:
        """Drop a partially written group so reads fall through to the next backend"""
        for name in names:
            try:
                backend.delete(COOKIE_NAMES[name])
            except StorageError:
                logger.debug(f"Could not purge {COOKIE_NAMES[name]} from '{backend.name}'")

    def _read_first(self, what: str, read: Callable[[StorageBackend], Optional[object]]):
        for backend in self.backends:
            try:
                value = read(backend)
            except StorageError as e:
                logger.warning(f"Failed to read {what} from '{backend.name}': {e}")
                continue
            if value is not None:
                return value
        return None

    def _delete_keys(self, what: str, names: Sequence[str]) -> None:
        failures = 0
        for backend in self.backends:
            failed = False
            for name in names:
                try:
                    backend.delete(COOKIE_NAMES[name])
                except StorageError as e:
                    failed = True
                    logger.warning(f"Failed to delete {COOKIE_NAMES[name]} from '{backend.name}': {e}")
            if failed:
                failures += 1
        if failures == len(self.backends):
            logger.error(f"Failed to clear {what} from every credential backend")
            raise StorageUnavailable(f"Could not clear {what}: all storage backends failed")

    # Token set

    def save_tokens(self, tokens: TokenSet) -> None:
        """Persist a token set to every backend"""
        if tokens.refresh_token:
            max_age = REFRESH_TOKEN_MAX_AGE_SECONDS
        else:
            max_age = max(0, (tokens.expires_at - self._clock()) // 1000)

        fields: Dict[str, str] = {
            "ACCESS_TOKEN": tokens.access_token,
            "EXPIRES_AT": str(tokens.expires_at),
            "SCOPE": tokens.scope,
        }

        def write(backend: StorageBackend):
            for name, value in fields.items():
                backend.set(COOKIE_NAMES[name], value, max_age=max_age, same_site="Strict")
            if tokens.refresh_token:
                backend.set(
                    COOKIE_NAMES["REFRESH_TOKEN"], tokens.refresh_token,
                    max_age=REFRESH_TOKEN_MAX_AGE_SECONDS, same_site="Strict",
                )
            else:
                backend.delete(COOKIE_NAMES["REFRESH_TOKEN"])

        self._write_all("token set", TOKEN_KEYS, write)
        logger.debug("Saved token set to credential backends")

    def load_tokens(self) -> Optional[TokenSet]:
        """Load the token set, preferring the highest priority backend"""
        return self._read_first("token set", self._read_tokens)

    @staticmethod
    def _read_tokens(backend: StorageBackend) -> Optional[TokenSet]:
        access_token = backend.get(COOKIE_NAMES["ACCESS_TOKEN"])
        expires_at = backend.get(COOKIE_NAMES["EXPIRES_AT"])
        scope = backend.get(COOKIE_NAMES["SCOPE"])
        if not access_token or not expires_at or scope is None:
            return None
        try:
            expires_at_ms = int(expires_at)
        except ValueError:
            logger.warning(f"Ignoring unparseable expires_at in '{backend.name}'")
            return None
        return TokenSet(
            access_token=access_token,
            refresh_token=backend.get(COOKIE_NAMES["REFRESH_TOKEN"]) or None,
            expires_at=expires_at_ms,
            scope=scope,
        )

    def clear_tokens(self) -> None:
        """Remove the token set from every backend"""
        self._delete_keys("token set", TOKEN_KEYS)

    # PKCE session

    def save_pkce_session(self, session: PKCESession, ttl_seconds: int = PKCE_SESSION_TTL_SECONDS) -> None:
        """Persist the pending PKCE session, overwriting any previous attempt"""

        def write(backend: StorageBackend):
            # Lax so the cookies survive the cross-site redirect back from the provider
            backend.set(COOKIE_NAMES["CODE_VERIFIER"], session.code_verifier, max_age=ttl_seconds, same_site="Lax")
            backend.set(COOKIE_NAMES["STATE"], session.state, max_age=ttl_seconds, same_site="Lax")

        self._write_all("PKCE session", PKCE_KEYS, write)

    def load_pkce_session(self) -> Optional[PKCESession]:
        return self._read_first("PKCE session", self._read_pkce_session)

    @staticmethod
    def _read_pkce_session(backend: StorageBackend) -> Optional[PKCESession]:
        code_verifier = backend.get(COOKIE_NAMES["CODE_VERIFIER"])
        state = backend.get(COOKIE_NAMES["STATE"])
        if not code_verifier or not state:
            return None
        return PKCESession(code_verifier=code_verifier, state=state)

    def clear_pkce_session(self) -> None:
        self._delete_keys("PKCE session", PKCE_KEYS)

    def clear_all(self) -> None:
        """Remove every credential key from every backend"""
        self._delete_keys("credentials", TOKEN_KEYS + PKCE_KEYS)
