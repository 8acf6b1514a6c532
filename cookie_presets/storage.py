"""
Storage capabilities — the two backends Cookie Presets consumes.

- ``BlobStore``: persistent key-value storage, ``get(key)`` / ``set(key, value)``,
  with no multi-key transactions and no compare-and-swap.
- ``CookieStore``: a browser-like cookie jar, ``get_all(domain)`` /
  ``set(details)`` / ``remove(url, name)``.

Both are duck-typed protocols; the in-memory implementations double as test
backends, ``FileBlobStore`` persists a single orjson document on disk.

Security Note:
    Never log blob values or cookie values. Only log keys, cookie names
    and domains.
"""
import os
import asyncio
import logging
from pathlib import Path
from typing import Any, Optional, Protocol, Union
from urllib.parse import urlsplit

import orjson
from pydantic import ValidationError

from .cookies import CookieRecord, strip_leading_dot
from .exceptions import CookieStoreError, StorageUnavailable

logger = logging.getLogger("cookie_presets.storage")


class BlobStore(Protocol):
    """Persistent key-value storage."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...


class CookieStore(Protocol):
    """Cookie jar read/write/delete primitives."""

    async def get_all(self, domain: Optional[str] = None) -> list[CookieRecord]:
        ...

    async def set(self, details: dict[str, Any]) -> CookieRecord:
        ...

    async def remove(self, url: str, name: str) -> None:
        ...


# ---------------------------------------------------------------------------
# Blob stores
# ---------------------------------------------------------------------------

class MemoryBlobStore:
    """In-process Blob Store.

    Values are copied through an orjson round-trip on the way in and out,
    so callers never hold references into the store. Setting
    ``available = False`` makes every call raise ``StorageUnavailable``.
    """

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, bytes] = {}
        self.available = True
        for key, value in (initial or {}).items():
            self._data[key] = orjson.dumps(value)

    def _check(self, key: str) -> None:
        if not self.available:
            raise StorageUnavailable("blob store is offline", key=key)

    async def get(self, key: str) -> Optional[Any]:
        self._check(key)
        raw = self._data.get(key)
        return None if raw is None else orjson.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        self._check(key)
        self._data[key] = orjson.dumps(value)

    def keys(self) -> list[str]:
        return list(self._data.keys())


class FileBlobStore:
    """Blob Store persisted as one JSON document on disk.

    Every ``set`` rewrites the whole document through a temporary file and
    ``os.replace``, so readers see either the old or the new document.
    File access runs in a worker thread, and writes from one instance are
    serialized so concurrent sets of different keys all land.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _read(self) -> dict[str, Any]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as err:
            raise StorageUnavailable(str(err)) from err
        if not raw.strip():
            return {}
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as err:
            raise StorageUnavailable(f"corrupt storage file {self.path}") from err
        if not isinstance(data, dict):
            raise StorageUnavailable(f"corrupt storage file {self.path}")
        return data

    def _write(self, data: dict[str, Any]) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(orjson.dumps(data))
            os.replace(tmp, self.path)
        except OSError as err:
            raise StorageUnavailable(str(err)) from err

    async def get(self, key: str) -> Optional[Any]:
        data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set(self, key: str, value: Any) -> None:
        try:
            value = orjson.loads(orjson.dumps(value))
        except TypeError as err:
            raise StorageUnavailable(f"value is not serializable: {err}", key=key) from err
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data[key] = value
            await asyncio.to_thread(self._write, data)
        logger.debug("Blob store write: key=%s path=%s", key, self.path)


# ---------------------------------------------------------------------------
# Cookie store
# ---------------------------------------------------------------------------

def _split_url(url: Any):
    """``urlsplit`` that yields None for non-text or malformed urls."""
    if not isinstance(url, str):
        return None
    try:
        return urlsplit(url)
    except ValueError:
        return None


def _domain_matches(cookie_domain: str, domain: str) -> bool:
    """True when ``cookie_domain`` is ``domain`` or one of its subdomains."""
    cookie_domain = strip_leading_dot(cookie_domain).lower()
    domain = strip_leading_dot(domain).lower()
    return cookie_domain == domain or cookie_domain.endswith("." + domain)


class MemoryCookieStore:
    """In-process cookie jar keyed by ``(domain, path, name)``.

    ``reject(name, reason)`` scripts a failure for every write of the
    named cookie, which is how tests exercise partial bulk failures.
    """

    def __init__(self, cookies: Optional[list[CookieRecord]] = None):
        self._jar: dict[tuple[str, str, str], CookieRecord] = {}
        self._rejections: dict[str, str] = {}
        self.writes: list[dict[str, Any]] = []
        for cookie in cookies or []:
            self._jar[self._key(cookie)] = cookie

    @staticmethod
    def _key(cookie: CookieRecord) -> tuple[str, str, str]:
        return (cookie.domain, cookie.path, cookie.name)

    def reject(self, name: str, reason: str = "rejected") -> None:
        """Make every future write of cookie ``name`` fail with ``reason``."""
        self._rejections[name] = reason

    async def get_all(self, domain: Optional[str] = None) -> list[CookieRecord]:
        cookies = list(self._jar.values())
        if domain:
            cookies = [c for c in cookies if _domain_matches(c.domain, domain)]
        return cookies

    async def set(self, details: dict[str, Any]) -> CookieRecord:
        self.writes.append(dict(details))
        name = details.get("name")
        if not name or not isinstance(name, str):
            raise CookieStoreError("Cookie name is required", reason="invalid_cookie")
        if name in self._rejections:
            raise CookieStoreError(
                f'Cookie "{name}" was rejected by the cookie store',
                reason=self._rejections[name],
            )
        url = details.get("url") or ""
        parts = _split_url(url)
        if parts is None or parts.scheme not in ("http", "https") or not parts.hostname:
            raise CookieStoreError(f"Invalid url: {url!r}", reason="invalid_url")
        if details.get("secure") and parts.scheme != "https":
            raise CookieStoreError(
                f'Secure cookie "{name}" requires an https url', reason="insecure_url"
            )
        if not details.get("domain"):
            details = {**details, "domain": parts.hostname}
        try:
            cookie = CookieRecord.model_validate(details)
        except ValidationError as err:
            raise CookieStoreError(
                f'Cookie "{name}" has {err.error_count()} invalid field(s)',
                reason="invalid_cookie",
            ) from err
        self._jar[self._key(cookie)] = cookie
        return cookie

    async def remove(self, url: str, name: str) -> None:
        parts = _split_url(url)
        host = parts.hostname if parts else None
        if not host:
            raise CookieStoreError(f"Invalid url: {url!r}", reason="invalid_url")
        matches = [
            key for key, cookie in self._jar.items()
            if cookie.name == name and _domain_matches(host, cookie.domain)
        ]
        for key in matches:
            del self._jar[key]
