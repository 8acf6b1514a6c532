"""
Vault Crypto Core — Work-key derivation, envelope sealing and serialization.

Envelope format:
    PBKDF2-HMAC-SHA256(master_secret, fixed salt, 100k) → work key
    AES-256-GCM(work key, random nonce) → base64([nonce 12B][payload + tag 16B])

Security Note:
    Never log plaintext or envelope values.
    The salt is fixed because the master secret is already 24 random bytes;
    this derivation must not be reused for low-entropy passwords.
    Nonces are random 96-bit, drawn fresh for every envelope.
"""
import os
import asyncio
import base64
import binascii
import logging
from typing import Any

import orjson
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..exceptions import DecryptionError, InvalidArgument, InvalidFormat

logger = logging.getLogger("cookie_presets.vault")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # GCM tag
KEY_LENGTH = 32  # AES-256
KDF_ITERATIONS = 100_000
# Existing envelopes were sealed with this exact salt.
KDF_SALT = b"CookieManagerPro-AES-Salt"


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_work_key(master_secret: str) -> bytes:
    """Derive the 32-byte AES key from the master secret.

    Args:
        master_secret: The 32-character master secret.

    Returns:
        32-byte work key; identical secrets yield identical keys.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=KDF_SALT,
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(master_secret.encode("utf-8"))


# ---------------------------------------------------------------------------
# Envelope sealing
# ---------------------------------------------------------------------------

def seal(plaintext: bytes, work_key: bytes) -> str:
    """Encrypt plaintext into a base64 envelope.

    Args:
        plaintext: Data to encrypt.
        work_key: 32-byte AES key.

    Returns:
        base64 text of [nonce 12B][ciphertext + tag 16B].
    """
    nonce = os.urandom(NONCE_SIZE)
    ct = AESGCM(work_key).encrypt(nonce, plaintext, None)
    return base64.b64encode(nonce + ct).decode("ascii")


def open_envelope(envelope: str, work_key: bytes) -> bytes:
    """Verify and decrypt a base64 envelope.

    Args:
        envelope: Output of :func:`seal`.
        work_key: 32-byte AES key.

    Returns:
        Decrypted plaintext bytes.

    Raises:
        DecryptionError: On bad base64, a truncated envelope, or a tag
            mismatch (tampering or wrong key).
    """
    if not isinstance(envelope, str):
        raise DecryptionError()
    try:
        combined = base64.b64decode(envelope, validate=True)
    except (binascii.Error, ValueError) as err:
        logger.debug("Envelope rejected: not base64")
        raise DecryptionError() from err
    if len(combined) < NONCE_SIZE + TAG_SIZE:
        logger.debug("Envelope rejected: %d bytes is too short", len(combined))
        raise DecryptionError()
    nonce = combined[:NONCE_SIZE]
    ct = combined[NONCE_SIZE:]
    try:
        return AESGCM(work_key).decrypt(nonce, ct, None)
    except InvalidTag as err:
        logger.debug("Envelope rejected: authentication failed")
        raise DecryptionError() from err


# ---------------------------------------------------------------------------
# Value serialization
# ---------------------------------------------------------------------------

def serialize_value(value: Any) -> bytes:
    """Serialize a JSON-compatible value to UTF-8 bytes.

    Raises:
        InvalidArgument: If the value is not JSON-serializable.
    """
    try:
        return orjson.dumps(value)
    except TypeError as err:
        raise InvalidArgument(f"Data is not JSON-serializable: {err}") from err


def deserialize_value(data: bytes) -> Any:
    """Parse bytes produced by :func:`serialize_value`."""
    return orjson.loads(data)


def _is_json_container(value: Any) -> bool:
    return isinstance(value, (dict, list, tuple))


class EnvelopeCipher:
    """Authenticated encryption of JSON values under the master secret.

    Holds no key material between calls: the master secret is fetched
    from the Key Manager and the work key derived on every operation.
    """

    def __init__(self, key_manager):
        self._keys = key_manager

    async def _work_key(self) -> bytes:
        secret = await self._keys.get_or_create_key()
        # 100k PBKDF2 rounds; keep them off the event loop.
        return await asyncio.to_thread(derive_work_key, secret)

    async def encrypt(self, value: Any) -> str:
        """Serialize and seal ``value``.

        Raises:
            InvalidArgument: If ``value`` is not JSON-serializable.
            StorageUnavailable: If the master secret cannot be loaded.
        """
        plaintext = serialize_value(value)
        return seal(plaintext, await self._work_key())

    async def decrypt(self, envelope: str) -> Any:
        """Open ``envelope`` and parse its JSON payload.

        Raises:
            DecryptionError: If the envelope is malformed, tampered with,
                or sealed under another master secret.
        """
        plaintext = open_envelope(envelope, await self._work_key())
        try:
            return deserialize_value(plaintext)
        except orjson.JSONDecodeError as err:
            raise DecryptionError() from err

    async def encrypt_json(self, value: Any) -> str:
        """Like :meth:`encrypt`, but only for JSON objects and arrays.

        Raises:
            InvalidArgument: If ``value`` is a scalar or None.
        """
        if not _is_json_container(value):
            raise InvalidArgument("encrypt_json requires a JSON object or array")
        return await self.encrypt(value)

    async def decrypt_json(self, envelope: str) -> Any:
        """Like :meth:`decrypt`, but the payload must be an object or array.

        Raises:
            InvalidArgument: If ``envelope`` is not a string.
            InvalidFormat: If the decrypted payload is a scalar or null.
        """
        if not isinstance(envelope, str):
            raise InvalidArgument("decrypt_json requires a string input")
        value = await self.decrypt(envelope)
        if not _is_json_container(value):
            raise InvalidFormat("Decrypted data is not a JSON object or array")
        return value
