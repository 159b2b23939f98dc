"""Key-value storage backends for credentials

Each backend exposes the same ``get``/``set``/``delete`` capability over
string values so the credential store can treat them as an ordered list.
Failures surface as ``StorageError``.
"""

import json
import logging
import os
import platform
import time
from http.cookiejar import Cookie, LoadError, LWPCookieJar
from pathlib import Path
from typing import Callable, Dict, Optional, Union
from urllib.parse import quote, unquote

logger = logging.getLogger(__name__)

_PROBE_KEY = "__storage_test__"


class StorageError(Exception):
    """A storage backend could not complete an operation"""


def _ensure_secure_directory(path: Path):
    """Create parent directory with secure permissions"""
    parent_dir = path.parent
    if not parent_dir.exists():
        parent_dir.mkdir(parents=True, exist_ok=True)
        # Set directory permissions to 700 on Unix-like systems
        if platform.system() != "Windows":
            os.chmod(parent_dir, 0o700)


def _restrict_file(path: Path):
    # Set file permissions to 600 on Unix-like systems
    if platform.system() != "Windows":
        os.chmod(path, 0o600)


class StorageBackend:
    """Uniform capability interface implemented by every backend"""

    name = "backend"

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str, max_age: Optional[int] = None, same_site: str = "Strict") -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def is_available(self) -> bool:
        """Probe the backend with a throwaway key"""
        try:
            self.set(_PROBE_KEY, "test", max_age=60)
            supported = self.get(_PROBE_KEY) == "test"
            self.delete(_PROBE_KEY)
            return supported
        except StorageError:
            return False


class MemoryBackend(StorageBackend):
    """Process-local backend, used by tests and the mock gate"""

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._data: Dict[str, tuple] = {}

    def get(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def set(self, key: str, value: str, max_age: Optional[int] = None, same_site: str = "Strict") -> None:
        expires_at = self._clock() + max_age if max_age is not None else None
        self._data[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def wipe(self) -> None:
        self._data.clear()


class JsonFileBackend(StorageBackend):
    """Key-value store persisted as a JSON file with owner-only permissions"""

    name = "kv-store"

    def __init__(self, path: Union[str, Path], clock: Callable[[], float] = time.time):
        self.path = Path(path)
        self._clock = clock

    def _read(self) -> Dict[str, dict]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected content in {self.path}")
        return data

    def _write(self, data: Dict[str, dict]) -> None:
        try:
            _ensure_secure_directory(self.path)
            self.path.write_text(json.dumps(data, indent=2))
            _restrict_file(self.path)
        except OSError as e:
            raise StorageError(f"Failed to write {self.path}: {e}") from e

    def _live(self, data: Dict[str, dict]) -> Dict[str, dict]:
        now = self._clock()
        return {
            key: entry for key, entry in data.items()
            if isinstance(entry, dict) and (entry.get("expires_at") is None or now < entry["expires_at"])
        }

    def get(self, key: str) -> Optional[str]:
        entry = self._live(self._read()).get(key)
        if entry is None:
            return None
        value = entry.get("value")
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str, max_age: Optional[int] = None, same_site: str = "Strict") -> None:
        data = self._live(self._read())
        data[key] = {
            "value": value,
            "expires_at": self._clock() + max_age if max_age is not None else None,
        }
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._live(self._read())
        if data.pop(key, None) is not None or self.path.exists():
            self._write(data)


class CookieJarBackend(StorageBackend):
    """Cookie jar persisted in libwww-perl format

    Cookies are scoped to ``domain`` and ``path_scope``, marked ``Secure``
    (loopback hosts included) and carry the ``SameSite`` attribute the caller
    asks for. Values are
    percent-encoded the same way a browser's ``document.cookie`` expects.
    """

    name = "cookie-jar"

    def __init__(
        self,
        path: Union[str, Path],
        domain: str,
        path_scope: str = "/",
        secure: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self.path = Path(path)
        self.domain = domain
        self.path_scope = path_scope or "/"
        self.secure = secure
        self._clock = clock

    def _load(self) -> LWPCookieJar:
        jar = LWPCookieJar(str(self.path))
        if self.path.exists():
            try:
                jar.load(ignore_discard=True, ignore_expires=True)
            except (LoadError, OSError) as e:
                raise StorageError(f"Failed to load cookie jar {self.path}: {e}") from e

        # Expiry is judged by our clock, not the jar's
        now = int(self._clock())
        for cookie in list(jar):
            if cookie.is_expired(now):
                jar.clear(cookie.domain, cookie.path, cookie.name)
        return jar

    def _save(self, jar: LWPCookieJar) -> None:
        try:
            _ensure_secure_directory(self.path)
            jar.save(ignore_discard=True, ignore_expires=True)
            _restrict_file(self.path)
        except OSError as e:
            raise StorageError(f"Failed to save cookie jar {self.path}: {e}") from e

    def _find(self, jar: LWPCookieJar, key: str) -> Optional[Cookie]:
        for cookie in jar:
            if (cookie.name == key and cookie.domain == self.domain
                    and cookie.path == self.path_scope):
                return cookie
        return None

    def get(self, key: str) -> Optional[str]:
        cookie = self._find(self._load(), quote(key, safe=""))
        if cookie is None or cookie.value is None:
            return None
        return unquote(cookie.value)

    def set(self, key: str, value: str, max_age: Optional[int] = None, same_site: str = "Strict") -> None:
        jar = self._load()
        expires = int(self._clock() + max_age) if max_age is not None else None
        jar.set_cookie(Cookie(
            version=0,
            name=quote(key, safe=""),
            value=quote(value, safe=""),
            port=None,
            port_specified=False,
            domain=self.domain,
            domain_specified=True,
            domain_initial_dot=False,
            path=self.path_scope,
            path_specified=True,
            secure=self.secure,
            expires=expires,
            discard=False,
            comment=None,
            comment_url=None,
            rest={"SameSite": same_site},
        ))
        self._save(jar)

    def delete(self, key: str) -> None:
        jar = self._load()
        try:
            jar.clear(self.domain, self.path_scope, quote(key, safe=""))
        except KeyError:
            return
        self._save(jar)
