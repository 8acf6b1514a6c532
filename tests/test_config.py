"""Tests for PresetConfig."""
import pytest
from pydantic import ValidationError

from cookie_presets.vault import PresetConfig


class TestPresetConfig:

    def test_defaults(self):
        config = PresetConfig()
        assert config.master_key_name == "masterEncryptionKey"
        assert config.presets_key == "presets"
        assert config.storage_path is None

    def test_blank_key_rejected(self):
        with pytest.raises(ValidationError):
            PresetConfig(presets_key="   ")

    def test_keys_must_differ(self):
        with pytest.raises(ValidationError):
            PresetConfig(master_key_name="same", presets_key="same")

    def test_blank_storage_path_is_none(self):
        assert PresetConfig(storage_path="  ").storage_path is None

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("COOKIE_PRESETS_MASTER_KEY_NAME", "k")
        monkeypatch.setenv("COOKIE_PRESETS_MAP_KEY", "p")
        monkeypatch.setenv("COOKIE_PRESETS_STORAGE_PATH", "/tmp/presets.json")
        config = PresetConfig.from_env()
        assert (config.master_key_name, config.presets_key) == ("k", "p")
        assert config.storage_path == "/tmp/presets.json"

    def test_from_env_defaults(self, monkeypatch):
        for var in (
            "COOKIE_PRESETS_MASTER_KEY_NAME",
            "COOKIE_PRESETS_MAP_KEY",
            "COOKIE_PRESETS_STORAGE_PATH",
        ):
            monkeypatch.delenv(var, raising=False)
        assert PresetConfig.from_env() == PresetConfig()
