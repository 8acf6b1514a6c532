"""Exception classes for Cookie Presets.

Every public operation either returns its value or raises exactly one of
the errors below, each carrying a human-readable message.
"""
from typing import Optional


class CookiePresetsError(Exception):
    """Base class for all Cookie Presets errors."""


class StorageUnavailable(CookiePresetsError):
    """Raised when the Blob Store cannot be read or written."""

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        full_msg = "Storage unavailable"
        if key:
            full_msg += f" (key: {key})"
        full_msg += f": {message}"
        super().__init__(full_msg)


class NotFound(CookiePresetsError, LookupError):
    """Raised when a named preset does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Preset "{name}" not found')


class AlreadyExists(CookiePresetsError):
    """Raised when a rename target is already taken."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Preset "{name}" already exists')


class InvalidArgument(CookiePresetsError, ValueError):
    """Raised for empty names, identical renames or non-serializable payloads."""


class DecryptionError(CookiePresetsError):
    """Raised when an envelope cannot be decrypted.

    Authentication failure, malformed envelopes and wrong keys all raise
    this same error with the same message.
    """

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "Decryption failed: envelope is invalid or was sealed with another key"
        )


class InvalidFormat(CookiePresetsError, ValueError):
    """Raised when an import payload is not valid JSON or not an array."""


class CookieStoreError(CookiePresetsError):
    """Raised by a Cookie Store when a single read, write or removal fails.

    ``reason`` is a short machine-readable kind (e.g. ``rejected``,
    ``invalid_url``) used when reporting per-cookie failures.
    """

    def __init__(self, message: str, reason: str = "rejected"):
        self.reason = reason
        super().__init__(message)
