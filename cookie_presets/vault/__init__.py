"""Preset Vault — Encrypted preset storage bound to a master secret.

Security Note (Threat Model):
    The master secret is stored next to the presets in the same Blob
    Store. Anyone able to read that storage can decrypt every preset;
    encryption protects exported data and casual inspection, not a
    compromised profile. This is an accepted limitation.
"""

from .config import PresetConfig
from .keys import KeyManager, generate_master_secret
from .crypto import EnvelopeCipher, derive_work_key
from .presets import PresetStore

__all__ = [
    "PresetConfig",
    "KeyManager",
    "generate_master_secret",
    "EnvelopeCipher",
    "derive_work_key",
    "PresetStore",
]
