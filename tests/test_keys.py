"""
Tests for the Key Manager.

Tests cover:
- Secret generation (length, alphabet, randomness)
- get_or_create_key idempotency and persistence
- Regeneration of corrupted secrets
- Storage failures
- Concurrent first-time callers
"""
import asyncio
import base64

import pytest

from cookie_presets import MemoryBlobStore, StorageUnavailable
from cookie_presets.vault import KeyManager, generate_master_secret
from cookie_presets.vault.keys import SECRET_LENGTH, is_valid_secret


class TestGenerateMasterSecret:
    """Tests for generate_master_secret()."""

    def test_length_is_32(self):
        for _ in range(50):
            assert len(generate_master_secret()) == SECRET_LENGTH

    def test_is_unpadded_base64(self):
        secret = generate_master_secret()
        assert "=" not in secret
        assert len(base64.b64decode(secret)) == 24

    def test_secrets_differ(self):
        assert generate_master_secret() != generate_master_secret()


class TestIsValidSecret:

    def test_valid(self):
        assert is_valid_secret("a" * 32)

    @pytest.mark.parametrize("value", [None, "", "a" * 31, "a" * 33, 12345, b"a" * 32])
    def test_invalid(self, value):
        assert not is_valid_secret(value)


class TestGetOrCreateKey:
    """Tests for KeyManager.get_or_create_key()."""

    @pytest.mark.asyncio
    async def test_creates_and_persists(self, blob_store, key_manager):
        """A new secret is written under the configured key."""
        secret = await key_manager.get_or_create_key()
        assert len(secret) == 32
        assert await blob_store.get("masterEncryptionKey") == secret

    @pytest.mark.asyncio
    async def test_idempotent(self, key_manager):
        """Repeated calls return the identical secret."""
        first = await key_manager.get_or_create_key()
        second = await key_manager.get_or_create_key()
        assert first == second

    @pytest.mark.asyncio
    async def test_reuses_existing_secret(self):
        existing = "x" * 32
        store = MemoryBlobStore({"masterEncryptionKey": existing})
        assert await KeyManager(store).get_or_create_key() == existing

    @pytest.mark.asyncio
    async def test_regenerates_invalid_length(self, caplog):
        """A corrupted secret is replaced, never padded."""
        store = MemoryBlobStore({"masterEncryptionKey": "short"})
        with caplog.at_level("WARNING", logger="cookie_presets.vault"):
            secret = await KeyManager(store).get_or_create_key()
        assert len(secret) == 32
        assert not secret.startswith("short")
        assert await store.get("masterEncryptionKey") == secret
        assert "invalid length" in caplog.text
        assert "short" not in caplog.text

    @pytest.mark.asyncio
    async def test_custom_key_name(self, blob_store):
        manager = KeyManager(blob_store, key_name="otherKey")
        secret = await manager.get_or_create_key()
        assert await blob_store.get("otherKey") == secret
        assert await blob_store.get("masterEncryptionKey") is None

    @pytest.mark.asyncio
    async def test_storage_unavailable(self, blob_store, key_manager):
        blob_store.available = False
        with pytest.raises(StorageUnavailable):
            await key_manager.get_or_create_key()

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_agree(self, key_manager):
        """Two first-time callers observe one persisted secret."""
        first, second = await asyncio.gather(
            key_manager.get_or_create_key(),
            key_manager.get_or_create_key(),
        )
        assert first == second

    @pytest.mark.asyncio
    async def test_init_returns_secret(self, key_manager):
        secret = await key_manager.init()
        assert secret == await key_manager.get_or_create_key()
