"""
Tests for CookieManager and its message dispatcher.

Tests cover:
- Cookie CRUD through the manager
- Preset lifecycle end to end
- Export from the jar and import back onto per-cookie domains, with
  malformed elements reported per cookie
- handle() responses for success, taxonomy errors, ill-typed payloads and
  unknown actions
"""
import orjson
import pytest

from cookie_presets import (
    CookieManager,
    CookieRecord,
    FileBlobStore,
    InvalidArgument,
    MemoryBlobStore,
    MemoryCookieStore,
)
from cookie_presets.vault import PresetConfig


@pytest.fixture
def filled_jar():
    return MemoryCookieStore([
        CookieRecord(name="sid", value="1", domain=".example.com", secure=True),
        CookieRecord(name="lang", value="en", domain="example.com"),
        CookieRecord(name="x", value="y", domain="other.org"),
    ])


class TestCookieOperations:

    @pytest.mark.asyncio
    async def test_set_cookie_builds_url(self, manager, cookie_store):
        cookie = await manager.set_cookie({
            "name": "a", "value": "1", "domain": ".x.com", "secure": True,
        })
        assert cookie.domain == ".x.com"
        assert cookie_store.writes[0]["url"] == "https://x.com"

    @pytest.mark.asyncio
    async def test_set_cookie_requires_target(self, manager):
        with pytest.raises(InvalidArgument):
            await manager.set_cookie({"name": "a"})

    @pytest.mark.asyncio
    async def test_delete_cookie(self, manager):
        await manager.set_cookie({"name": "a", "domain": "x.com"})
        await manager.delete_cookie("http://x.com", "a")
        assert await manager.get_cookies() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url, name", [("", "a"), ("http://x.com", "")])
    async def test_delete_cookie_requires_both(self, manager, url, name):
        with pytest.raises(InvalidArgument):
            await manager.delete_cookie(url, name)


class TestPresetFlow:
    """Save from one domain, apply to another."""

    @pytest.mark.asyncio
    async def test_save_and_apply(self, filled_jar):
        manager = CookieManager(MemoryBlobStore(), filled_jar)
        cookies = await manager.get_cookies("example.com")
        await manager.save_preset("prod", cookies)
        assert await manager.list_presets() == ["prod"]
        result = await manager.apply_preset("prod", "staging.example.net")
        assert result.applied_count == 2
        staged = await manager.get_cookies("staging.example.net")
        assert sorted(c.name for c in staged) == ["lang", "sid"]

    @pytest.mark.asyncio
    async def test_rename_and_delete(self, manager):
        await manager.save_preset("a", [])
        await manager.rename_preset("a", "b")
        assert await manager.load_preset("b") == []
        await manager.delete_preset("b")
        assert await manager.list_presets() == []

    @pytest.mark.asyncio
    async def test_init_creates_key(self, blob_store, manager):
        await manager.init()
        assert len(await blob_store.get("masterEncryptionKey")) == 32

    @pytest.mark.asyncio
    async def test_custom_config_keys(self, blob_store, cookie_store):
        config = PresetConfig(master_key_name="k", presets_key="p")
        manager = CookieManager(blob_store, cookie_store, config=config)
        await manager.save_preset("a", [])
        assert sorted(blob_store.keys()) == ["k", "p"]


class TestExportImport:

    @pytest.mark.asyncio
    async def test_export_domain(self, filled_jar):
        manager = CookieManager(MemoryBlobStore(), filled_jar)
        data = orjson.loads(await manager.export_cookies("example.com"))
        assert sorted(c["name"] for c in data) == ["lang", "sid"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("encrypted", [False, True])
    async def test_import_onto_own_domains(self, filled_jar, encrypted):
        blob_store = MemoryBlobStore()
        source = CookieManager(blob_store, filled_jar)
        text = await source.export_cookies(encrypted=encrypted)
        target_jar = MemoryCookieStore()
        target = CookieManager(blob_store, target_jar)
        result = await target.import_cookies(text, encrypted=encrypted)
        assert (result.applied_count, result.failed_count) == (3, 0)
        domains = sorted(c.domain for c in await target_jar.get_all())
        assert domains == [".example.com", "example.com", "other.org"]

    @pytest.mark.asyncio
    async def test_import_continues_after_failure(self, manager, cookie_store):
        cookie_store.reject("bad")
        text = orjson.dumps([
            {"name": "bad", "domain": "x.com"},
            {"name": "good", "domain": "x.com", "sameSite": "unexpected"},
        ]).decode()
        result = await manager.import_cookies(text)
        assert (result.applied_count, result.failed_count) == (1, 1)
        assert result.failures[0].cookie_name == "bad"
        assert "sameSite" not in cookie_store.writes[1]

    @pytest.mark.asyncio
    async def test_import_skips_ill_typed_record(self, manager, cookie_store):
        """One malformed element is reported; its neighbours still land."""
        text = orjson.dumps([
            {"name": "a", "value": "1", "domain": "x.com"},
            {"name": "b", "domain": "x.com", "expirationDate": "soon"},
            {"name": "c", "value": 3, "domain": "x.com"},
        ]).decode()
        result = await manager.import_cookies(text)
        assert (result.applied_count, result.failed_count) == (2, 1)
        [failure] = result.failures
        assert (failure.cookie_name, failure.error_kind) == ("b", "invalid_cookie")
        jar = {c.name: c.value for c in await cookie_store.get_all()}
        assert jar == {"a": "1", "c": "3"}


class TestHandle:
    """Tests for the message dispatcher."""

    @pytest.mark.asyncio
    async def test_unknown_action(self, manager):
        response = await manager.handle("explode")
        assert response == {"success": False, "error": "Unknown action: explode"}

    @pytest.mark.asyncio
    async def test_preset_round_trip(self, manager):
        cookies = [{"name": "a", "value": "1", "domain": "x.com"}]
        saved = await manager.handle("savePreset", {"presetName": " p ", "cookies": cookies})
        assert saved == {"success": True, "presetName": "p"}
        listed = await manager.handle("getPresets")
        assert listed == {"success": True, "presets": ["p"]}
        loaded = await manager.handle("loadPreset", {"presetName": "p"})
        assert loaded["cookies"][0]["name"] == "a"

    @pytest.mark.asyncio
    async def test_errors_become_responses(self, manager):
        response = await manager.handle("loadPreset", {"presetName": "missing"})
        assert response == {"success": False, "error": 'Preset "missing" not found'}
        response = await manager.handle("savePreset", {"presetName": "", "cookies": []})
        assert response["success"] is False

    @pytest.mark.asyncio
    async def test_rename_collision(self, manager):
        await manager.save_preset("a", [])
        await manager.save_preset("b", [])
        response = await manager.handle("renamePreset", {"oldName": "a", "newName": "b"})
        assert response == {"success": False, "error": 'Preset "b" already exists'}

    @pytest.mark.asyncio
    async def test_apply_preset_summary(self, manager, cookie_store):
        await manager.save_preset("p", [
            {"name": "a", "domain": "x.com"},
            {"name": "b", "domain": "x.com"},
        ])
        cookie_store.reject("b", reason="blocked")
        response = await manager.handle("applyPreset", {"presetName": "p", "domain": "y.com"})
        assert response["success"] is True
        assert response["applied"] == 1
        assert response["failed"] == 1
        assert response["errors"][0]["name"] == "b"

    @pytest.mark.asyncio
    async def test_cookie_actions(self, manager):
        set_resp = await manager.handle(
            "setCookie", {"cookieDetails": {"name": "a", "value": "1", "domain": "x.com"}},
        )
        assert set_resp["success"] is True
        assert set_resp["cookie"]["name"] == "a"
        got = await manager.handle("getCookies", {"domain": "x.com"})
        assert [c["name"] for c in got["cookies"]] == ["a"]
        deleted = await manager.handle(
            "deleteCookie", {"cookieDetails": {"url": "http://x.com", "name": "a"}},
        )
        assert deleted == {"success": True}

    @pytest.mark.asyncio
    async def test_export_import_actions(self, manager):
        await manager.set_cookie({"name": "a", "domain": "x.com"})
        exported = await manager.handle("exportCookies", {"encrypted": True})
        assert exported["encrypted"] is True
        imported = await manager.handle(
            "importCookies", {"jsonData": exported["data"], "encrypted": True},
        )
        assert imported == {"success": True, "imported": 1, "failed": 0}

    @pytest.mark.asyncio
    async def test_import_bad_payload(self, manager):
        response = await manager.handle("importCookies", {"jsonData": '{"a": 1}'})
        assert response == {
            "success": False, "error": "Invalid cookie data: expected an array",
        }

    @pytest.mark.asyncio
    async def test_import_action_reports_bad_element(self, manager):
        response = await manager.handle(
            "importCookies", {"jsonData": '[{"name": "a", "domain": "x.com"}, 5]'},
        )
        assert response["success"] is True
        assert (response["imported"], response["failed"]) == (1, 1)
        assert response["errors"][0]["kind"] == "invalid_cookie"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action, payload", [
        ("setCookie", {"cookieDetails": {"name": "a", "domain": "x.com", "expirationDate": "soon"}}),
        ("setCookie", {"cookieDetails": {"name": "a", "domain": ["x.com"]}}),
        ("setCookie", {"cookieDetails": "a=1"}),
        ("deleteCookie", {"cookieDetails": {"url": 5, "name": "a"}}),
        ("getCookies", {"domain": 5}),
        ("exportCookies", {"domain": ["x.com"]}),
        ("applyPreset", {"presetName": "p", "domain": 5}),
        ("importCookies", {"jsonData": 42}),
        ("savePreset", {"presetName": "p", "cookies": "nope"}),
        ("renamePreset", {"oldName": 1, "newName": "b"}),
    ])
    async def test_ill_typed_payloads_become_responses(self, manager, action, payload):
        await manager.save_preset("p", [])
        response = await manager.handle(action, payload)
        assert response["success"] is False
        assert response["error"]

    @pytest.mark.asyncio
    async def test_non_object_payload(self, manager):
        response = await manager.handle("getPresets", ["x"])
        assert response == {"success": False, "error": "Payload must be an object"}


class TestFromConfig:

    def test_file_store(self, tmp_path):
        config = PresetConfig(storage_path=str(tmp_path / "s.json"))
        manager = CookieManager.from_config(MemoryCookieStore(), config)
        assert isinstance(manager.presets._store, FileBlobStore)

    def test_memory_store(self):
        manager = CookieManager.from_config(MemoryCookieStore(), PresetConfig())
        assert isinstance(manager.presets._store, MemoryBlobStore)

    @pytest.mark.asyncio
    async def test_file_store_survives_restart(self, tmp_path):
        config = PresetConfig(storage_path=str(tmp_path / "s.json"))
        first = CookieManager.from_config(MemoryCookieStore(), config)
        await first.save_preset("p", [{"name": "a", "domain": "x.com"}])
        second = CookieManager.from_config(MemoryCookieStore(), config)
        [cookie] = await second.load_preset("p")
        assert cookie.name == "a"
