"""
PresetStore — Named, encrypted cookie presets kept in a Blob Store.

Provides the public API for presets:
- ``save(name, cookies)`` — encrypt and store (overwrites an existing name)
- ``load(name)`` — decrypt and return the cookie list
- ``list()`` / ``exists(name)`` — enumerate and check preset names
- ``delete(name)`` — remove a preset
- ``rename(old, new)`` — move a preset under a new name

The whole name → envelope map lives under one Blob Store key and every
mutation rewrites it. The Blob Store has no compare-and-swap, so mutations
are serialized through a single in-process lock; reads are lock-free and
may observe the map as it was before an in-flight mutation.

Security Note:
    Never log cookie values or envelopes. Only log preset names and counts.
"""
import asyncio
import logging
from typing import Any
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator, Mapping, Sequence

from ..cookies import CookieRecord, parse_cookie
from ..exceptions import AlreadyExists, InvalidArgument, InvalidFormat, NotFound
from .config import DEFAULT_PRESETS_KEY

logger = logging.getLogger("cookie_presets.vault")


class PresetStore:
    """Encrypted preset map bound to a Blob Store.

    Every cookie list is sealed as one envelope by the Envelope Cipher;
    callers only ever see decrypted ``CookieRecord`` lists.
    """

    def __init__(self, blob_store, cipher, presets_key: str = DEFAULT_PRESETS_KEY):
        self._store = blob_store
        self._cipher = cipher
        self._presets_key = presets_key
        # asyncio.Lock wakes waiters in FIFO order.
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_name(name: Any) -> str:
        """Return the trimmed preset name.

        Raises:
            InvalidArgument: If name is not a string or is blank.
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgument("Preset name is required")
        return name.strip()

    @staticmethod
    def _to_wire(cookies: Any) -> list[dict[str, Any]]:
        """Normalize a cookie sequence to its stored form.

        Raises:
            InvalidArgument: If cookies is not a sequence of cookie objects.
        """
        if isinstance(cookies, (str, bytes, Mapping)) or not isinstance(cookies, Sequence):
            raise InvalidArgument("Cookies must be a list")
        try:
            return [parse_cookie(cookie).to_wire() for cookie in cookies]
        except InvalidFormat as err:
            raise InvalidArgument(str(err)) from err

    # ------------------------------------------------------------------
    # Map helpers
    # ------------------------------------------------------------------

    async def _read_map(self) -> dict[str, str]:
        presets = await self._store.get(self._presets_key)
        return dict(presets) if presets else {}

    async def _write_map(self, presets: dict[str, str]) -> None:
        await self._store.set(self._presets_key, presets)

    @asynccontextmanager
    async def _mutation(self) -> AsyncIterator[dict[str, str]]:
        """Hold the mutation lock around one read-modify-write of the map.

        Yields the current map; the caller edits it in place and the map
        is persisted when the block exits without an error.
        """
        async with self._lock:
            presets = await self._read_map()
            yield presets
            await self._write_map(presets)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def save(self, name: str, cookies: Sequence[Any]) -> str:
        """Encrypt and store a cookie list under ``name``.

        Saving an existing name replaces its cookies.

        Args:
            name: Preset name (trimmed, non-empty, case-sensitive).
            cookies: Sequence of ``CookieRecord`` or cookie mappings; may be empty.

        Returns:
            The stored (trimmed) preset name.

        Raises:
            InvalidArgument: If the name is blank or cookies is not a list.
        """
        name = self._validate_name(name)
        envelope = await self._cipher.encrypt_json(self._to_wire(cookies))
        async with self._mutation() as presets:
            replaced = name in presets
            presets[name] = envelope
        logger.debug(
            "Preset saved: name=%s cookies=%d replaced=%s", name, len(cookies), replaced,
        )
        return name

    async def load(self, name: str) -> list[CookieRecord]:
        """Decrypt and return the cookies of preset ``name``.

        Raises:
            NotFound: If no preset has this name.
            DecryptionError: If the envelope cannot be opened, e.g. after
                the master secret was regenerated.
        """
        name = self._validate_name(name)
        presets = await self._read_map()
        if name not in presets:
            raise NotFound(name)
        cookies = await self._cipher.decrypt_json(presets[name])
        if not isinstance(cookies, list):
            raise InvalidFormat(f'Preset "{name}" does not hold a cookie list')
        return [parse_cookie(cookie) for cookie in cookies]

    async def list(self) -> list[str]:
        """Return all preset names in sorted order."""
        return sorted(await self._read_map())

    async def exists(self, name: str) -> bool:
        return self._validate_name(name) in await self._read_map()

    async def delete(self, name: str) -> None:
        """Remove preset ``name``.

        Raises:
            NotFound: If no preset has this name.
        """
        name = self._validate_name(name)
        async with self._mutation() as presets:
            if name not in presets:
                raise NotFound(name)
            del presets[name]
        logger.debug("Preset deleted: name=%s", name)

    async def rename(self, old_name: str, new_name: str) -> None:
        """Move preset ``old_name`` to ``new_name`` in a single map write.

        Raises:
            InvalidArgument: If either name is blank or both are equal.
            NotFound: If ``old_name`` does not exist.
            AlreadyExists: If ``new_name`` is already taken.
        """
        old_name = self._validate_name(old_name)
        new_name = self._validate_name(new_name)
        if old_name == new_name:
            raise InvalidArgument("New name must be different from old name")
        async with self._mutation() as presets:
            if old_name not in presets:
                raise NotFound(old_name)
            if new_name in presets:
                raise AlreadyExists(new_name)
            presets[new_name] = presets.pop(old_name)
        logger.debug("Preset renamed: %s -> %s", old_name, new_name)
