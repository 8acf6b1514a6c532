"""
Preset Configuration — Storage layout settings loaded from the environment.

Reads optional overrides from environment variables:
    COOKIE_PRESETS_MASTER_KEY_NAME = <blob key holding the master secret>
    COOKIE_PRESETS_MAP_KEY = <blob key holding the preset map>
    COOKIE_PRESETS_STORAGE_PATH = <path of the JSON blob file>

Security Note:
    The master secret itself is never read from or written to the
    environment; it lives only in the Blob Store.
"""
import os
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger("cookie_presets.vault")

DEFAULT_MASTER_KEY_NAME = "masterEncryptionKey"
DEFAULT_PRESETS_KEY = "presets"


class PresetConfig(BaseModel):
    """Validated storage configuration."""

    master_key_name: str = Field(default=DEFAULT_MASTER_KEY_NAME)
    presets_key: str = Field(default=DEFAULT_PRESETS_KEY)
    storage_path: Optional[str] = Field(default=None)

    @field_validator("master_key_name", "presets_key")
    @classmethod
    def validate_blob_key(cls, v: str) -> str:
        """Blob keys must be non-empty after trimming."""
        v = v.strip()
        if not v:
            raise ValueError("Blob store key names cannot be empty")
        return v

    @field_validator("storage_path")
    @classmethod
    def validate_storage_path(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def validate_distinct_keys(self) -> "PresetConfig":
        """The secret and the preset map cannot share a blob key."""
        if self.master_key_name == self.presets_key:
            raise ValueError(
                f"master_key_name and presets_key must differ "
                f"(both are {self.master_key_name!r})"
            )
        return self

    @classmethod
    def from_env(cls) -> "PresetConfig":
        """Create PresetConfig from environment variables.

        Returns:
            Populated PresetConfig instance.
        """
        config = cls(
            master_key_name=os.environ.get(
                "COOKIE_PRESETS_MASTER_KEY_NAME", DEFAULT_MASTER_KEY_NAME
            ),
            presets_key=os.environ.get(
                "COOKIE_PRESETS_MAP_KEY", DEFAULT_PRESETS_KEY
            ),
            storage_path=os.environ.get("COOKIE_PRESETS_STORAGE_PATH"),
        )
        logger.debug(
            "Preset config loaded: presets_key=%s storage_path=%s",
            config.presets_key, config.storage_path,
        )
        return config
