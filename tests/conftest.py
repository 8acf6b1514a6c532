"""Shared fixtures for the Cookie Presets test suite."""
import pytest

from cookie_presets import CookieManager, CookieRecord, MemoryBlobStore, MemoryCookieStore
from cookie_presets.vault import EnvelopeCipher, KeyManager, PresetStore


@pytest.fixture
def blob_store():
    """Empty in-memory Blob Store."""
    return MemoryBlobStore()


@pytest.fixture
def cookie_store():
    """Empty in-memory cookie jar."""
    return MemoryCookieStore()


@pytest.fixture
def key_manager(blob_store):
    return KeyManager(blob_store)


@pytest.fixture
def cipher(key_manager):
    return EnvelopeCipher(key_manager)


@pytest.fixture
def presets(blob_store, cipher):
    return PresetStore(blob_store, cipher)


@pytest.fixture
def manager(blob_store, cookie_store):
    return CookieManager(blob_store, cookie_store)


@pytest.fixture
def sample_cookies():
    """Three cookies covering secure, session and expiring variants."""
    return [
        CookieRecord(
            name="sid", value="s3cr3t", domain=".example.com",
            secure=True, http_only=True, same_site="lax",
        ),
        CookieRecord(
            name="theme", value="dark", domain="example.com",
            expiration_date=1893456000,
        ),
        CookieRecord(
            name="csrf", value="tok", domain="example.com",
            secure=True, same_site="strict", session=True,
        ),
    ]
