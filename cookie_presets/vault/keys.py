"""
Key Manager — Master secret generation and lifecycle.

The master secret is a 32-character string (24 random bytes, base64) kept
in the Blob Store. It is generated once and then reused for the lifetime
of the store.

Security Note:
    Never log key material. Only log lengths and lifecycle events.
    If the persisted secret is corrupted to an invalid length it is
    replaced, and every envelope sealed with the old secret becomes
    permanently undecryptable. This is logged as a warning.
"""
import base64
import asyncio
import secrets
import logging

from .config import DEFAULT_MASTER_KEY_NAME

logger = logging.getLogger("cookie_presets.vault")

SECRET_LENGTH = 32
_SECRET_ENTROPY_BYTES = 24  # 24 bytes -> 32 base64 characters


def generate_master_secret() -> str:
    """Generate a random 32-character master secret.

    Returns:
        Base64 text of 24 random bytes, padding stripped.

    Raises:
        RuntimeError: If the generated secret is not exactly 32 characters.
    """
    raw = secrets.token_bytes(_SECRET_ENTROPY_BYTES)
    secret = base64.b64encode(raw).decode("ascii").rstrip("=")
    if len(secret) != SECRET_LENGTH:
        raise RuntimeError(
            f"Generated secret has invalid length: {len(secret)} "
            f"(expected {SECRET_LENGTH})"
        )
    return secret


def is_valid_secret(value: object) -> bool:
    """True when ``value`` is a string of exactly 32 characters."""
    return isinstance(value, str) and len(value) == SECRET_LENGTH


class KeyManager:
    """Owns the master secret persisted in a Blob Store.

    ``get_or_create_key()`` is serialized with an ``asyncio.Lock`` so two
    first-time callers cannot persist two different secrets.
    """

    def __init__(self, blob_store, key_name: str = DEFAULT_MASTER_KEY_NAME):
        self._store = blob_store
        self._key_name = key_name
        self._lock = asyncio.Lock()

    @property
    def key_name(self) -> str:
        return self._key_name

    async def get_or_create_key(self) -> str:
        """Return the persisted master secret, creating it when needed.

        Returns:
            The 32-character master secret.

        Raises:
            StorageUnavailable: If the Blob Store cannot be read or written.
        """
        async with self._lock:
            current = await self._store.get(self._key_name)
            if is_valid_secret(current):
                return current
            if current is not None:
                logger.warning(
                    "Persisted master secret has invalid length (%s); "
                    "generating a new one. Existing presets can no longer be decrypted.",
                    len(current) if isinstance(current, str) else type(current).__name__,
                )
            secret = generate_master_secret()
            await self._store.set(self._key_name, secret)
            logger.info("Generated new master secret under key=%s", self._key_name)
            return secret

    async def init(self) -> str:
        """Ensure a master secret exists; used once at startup."""
        secret = await self.get_or_create_key()
        logger.debug("Key manager ready: key=%s", self._key_name)
        return secret
