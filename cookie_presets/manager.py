"""
CookieManager — One object wiring the preset vault to a cookie jar.

Provides the operations a front end needs (cookie CRUD, presets,
export/import) plus ``handle()``, a message dispatcher that answers
``{"action": ..., ...}`` requests with ``{"success": ..., ...}`` responses.

Security Note:
    Never log cookie values, envelopes or key material.
"""
import logging
from typing import Any, Optional
from collections.abc import Mapping

from .apply import apply_cookies, apply_preset
from .codec import export_cookies, import_cookies
from .cookies import ApplyResult, CookieRecord, build_cookie_url, parse_cookie
from .exceptions import CookiePresetsError, InvalidArgument, InvalidFormat
from .storage import FileBlobStore, MemoryBlobStore
from .vault import EnvelopeCipher, KeyManager, PresetConfig, PresetStore

logger = logging.getLogger("cookie_presets.manager")


def _object(value: Any, what: str) -> Mapping:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidArgument(f"{what} must be an object")
    return value


class CookieManager:
    """Cookie jar operations and encrypted presets over one Blob Store."""

    def __init__(
        self,
        blob_store: Any,
        cookie_store: Any,
        config: Optional[PresetConfig] = None,
    ):
        self.config = config or PresetConfig()
        self.cookie_store = cookie_store
        self.keys = KeyManager(blob_store, key_name=self.config.master_key_name)
        self.cipher = EnvelopeCipher(self.keys)
        self.presets = PresetStore(
            blob_store, self.cipher, presets_key=self.config.presets_key,
        )
        self._handlers = {
            "getCookies": self._on_get_cookies,
            "setCookie": self._on_set_cookie,
            "deleteCookie": self._on_delete_cookie,
            "savePreset": self._on_save_preset,
            "loadPreset": self._on_load_preset,
            "getPresets": self._on_get_presets,
            "deletePreset": self._on_delete_preset,
            "renamePreset": self._on_rename_preset,
            "applyPreset": self._on_apply_preset,
            "exportCookies": self._on_export_cookies,
            "importCookies": self._on_import_cookies,
        }

    @classmethod
    def from_config(
        cls, cookie_store: Any, config: Optional[PresetConfig] = None,
    ) -> "CookieManager":
        """Build a manager whose Blob Store follows ``config.storage_path``.

        A file-backed store is used when a path is configured, an
        in-memory one otherwise.
        """
        config = config or PresetConfig.from_env()
        if config.storage_path:
            blob_store = FileBlobStore(config.storage_path)
        else:
            blob_store = MemoryBlobStore()
        return cls(blob_store, cookie_store, config=config)

    async def init(self) -> None:
        """Make sure the master secret exists before the first request."""
        await self.keys.init()

    # ------------------------------------------------------------------
    # Cookie jar
    # ------------------------------------------------------------------

    async def get_cookies(self, domain: Optional[str] = None) -> list[CookieRecord]:
        if domain is not None and not isinstance(domain, str):
            raise InvalidArgument("Domain must be a string")
        return await self.cookie_store.get_all(domain or None)

    async def set_cookie(self, details: dict[str, Any]) -> CookieRecord:
        """Create or update one cookie.

        ``url`` is derived from ``domain`` and ``secure`` when missing.

        Raises:
            InvalidArgument: If neither ``url`` nor ``domain`` is given, or
                a cookie field has the wrong type.
            CookieStoreError: If the cookie store rejects the write.
        """
        if not isinstance(details, Mapping):
            raise InvalidArgument("Cookie details must be an object")
        if not details.get("url") and not details.get("domain"):
            raise InvalidArgument("Either url or domain must be provided")
        request = {k: v for k, v in details.items() if v is not None}
        try:
            cookie = parse_cookie(request)
        except InvalidFormat as err:
            raise InvalidArgument(str(err)) from err
        if not request.get("url"):
            request["url"] = build_cookie_url(cookie.domain, cookie.secure)
        return await self.cookie_store.set(request)

    async def delete_cookie(self, url: str, name: str) -> None:
        """Remove cookie ``name`` visible at ``url``.

        Raises:
            InvalidArgument: If url or name is missing or not a string.
        """
        if not isinstance(url, str) or not isinstance(name, str) or not url or not name:
            raise InvalidArgument("Both url and name are required")
        await self.cookie_store.remove(url, name)

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    async def save_preset(self, name: str, cookies: list[Any]) -> str:
        return await self.presets.save(name, cookies)

    async def load_preset(self, name: str) -> list[CookieRecord]:
        return await self.presets.load(name)

    async def list_presets(self) -> list[str]:
        return await self.presets.list()

    async def delete_preset(self, name: str) -> None:
        await self.presets.delete(name)

    async def rename_preset(self, old_name: str, new_name: str) -> None:
        await self.presets.rename(old_name, new_name)

    async def apply_preset(self, name: str, domain: str) -> ApplyResult:
        return await apply_preset(self.presets, self.cookie_store, name, domain)

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    async def export_cookies(
        self, domain: Optional[str] = None, encrypted: bool = False,
    ) -> str:
        """Export the jar's cookies for ``domain`` (all cookies when None)."""
        cookies = await self.get_cookies(domain)
        return await export_cookies(self.cipher, cookies, encrypted=encrypted)

    async def import_cookies(self, text: str, encrypted: bool = False) -> ApplyResult:
        """Decode an export and write each cookie onto its own domain."""
        cookies = await import_cookies(self.cipher, text, encrypted=encrypted)
        result = await apply_cookies(self.cookie_store, cookies)
        logger.info(
            "Import finished: %d imported, %d failed",
            result.applied_count, result.failed_count,
        )
        return result

    # ------------------------------------------------------------------
    # Message dispatcher
    # ------------------------------------------------------------------

    async def handle(self, action: str, payload: Optional[dict[str, Any]] = None) -> dict:
        """Run ``action`` with ``payload`` and build a response dict.

        Errors from the Cookie Presets taxonomy become
        ``{"success": False, "error": <message>}``; anything else propagates.
        Payload fields of the wrong type are reported as ``InvalidArgument``.
        """
        handler = self._handlers.get(action) if isinstance(action, str) else None
        if handler is None:
            return {"success": False, "error": f"Unknown action: {action}"}
        try:
            data = await handler(_object(payload, "Payload"))
        except CookiePresetsError as err:
            logger.debug("Action %s failed: %s", action, type(err).__name__)
            return {"success": False, "error": str(err)}
        return {"success": True, **data}

    async def _on_get_cookies(self, payload: dict) -> dict:
        cookies = await self.get_cookies(payload.get("domain"))
        return {"cookies": [c.to_wire() for c in cookies]}

    async def _on_set_cookie(self, payload: dict) -> dict:
        cookie = await self.set_cookie(_object(payload.get("cookieDetails"), "cookieDetails"))
        return {"cookie": cookie.to_wire()}

    async def _on_delete_cookie(self, payload: dict) -> dict:
        details = _object(payload.get("cookieDetails"), "cookieDetails")
        await self.delete_cookie(details.get("url"), details.get("name"))
        return {}

    async def _on_save_preset(self, payload: dict) -> dict:
        name = await self.save_preset(payload.get("presetName"), payload.get("cookies"))
        return {"presetName": name}

    async def _on_load_preset(self, payload: dict) -> dict:
        cookies = await self.load_preset(payload.get("presetName"))
        return {"cookies": [c.to_wire() for c in cookies]}

    async def _on_get_presets(self, payload: dict) -> dict:
        return {"presets": await self.list_presets()}

    async def _on_delete_preset(self, payload: dict) -> dict:
        await self.delete_preset(payload.get("presetName"))
        return {"presetName": payload.get("presetName")}

    async def _on_rename_preset(self, payload: dict) -> dict:
        await self.rename_preset(payload.get("oldName"), payload.get("newName"))
        return {"oldName": payload.get("oldName"), "newName": payload.get("newName")}

    async def _on_apply_preset(self, payload: dict) -> dict:
        result = await self.apply_preset(payload.get("presetName"), payload.get("domain"))
        return result.to_dict()

    async def _on_export_cookies(self, payload: dict) -> dict:
        encrypted = bool(payload.get("encrypted"))
        data = await self.export_cookies(payload.get("domain"), encrypted=encrypted)
        return {"data": data, "encrypted": encrypted}

    async def _on_import_cookies(self, payload: dict) -> dict:
        result = await self.import_cookies(
            payload.get("jsonData"), encrypted=bool(payload.get("encrypted")),
        )
        summary = result.to_dict()
        summary["imported"] = summary.pop("applied")
        return summary
