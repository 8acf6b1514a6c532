"""
Export/Import Codec — Transfer format for cookie lists.

Plain mode is a 2-space indented JSON array of cookie records; encrypted
mode is a single envelope string from the Envelope Cipher.
"""
import logging
from typing import Any
from collections.abc import Iterable

import orjson

from .cookies import CookieRecord, parse_cookie
from .exceptions import InvalidArgument, InvalidFormat

logger = logging.getLogger("cookie_presets.codec")


async def export_cookies(
    cipher,
    cookies: Iterable[Any],
    encrypted: bool = False,
) -> str:
    """Encode cookies for export.

    Args:
        cipher: EnvelopeCipher used in encrypted mode.
        cookies: ``CookieRecord`` instances or cookie mappings.
        encrypted: Return an envelope instead of plain JSON.

    Returns:
        Pretty-printed JSON array, or an envelope string.

    Raises:
        InvalidFormat: If an element is not a cookie object.
    """
    records = [parse_cookie(cookie).to_wire() for cookie in cookies]
    if encrypted:
        return await cipher.encrypt_json(records)
    return orjson.dumps(records, option=orjson.OPT_INDENT_2).decode("utf-8")


def _reinterpret(raw: Any) -> Any:
    try:
        return parse_cookie(raw)
    except InvalidFormat:
        return raw


async def import_cookies(
    cipher,
    text: str,
    encrypted: bool = False,
) -> list[Any]:
    """Decode an export back into normalized cookie records.

    Only the payload as a whole can fail here. An element that cannot be
    reinterpreted as a cookie is returned unchanged, and
    :func:`~cookie_presets.apply.apply_cookies` records it as an
    ``invalid_cookie`` failure without stopping the import.

    Args:
        cipher: EnvelopeCipher used in encrypted mode.
        text: Output of :func:`export_cookies` (or any compatible JSON).
        encrypted: ``text`` is an envelope.

    Returns:
        Elements in input order, as ``CookieRecord`` where valid.

    Raises:
        InvalidArgument: If ``text`` is empty or not a string.
        InvalidFormat: If the payload is not valid JSON or not an array.
        DecryptionError: If an encrypted payload cannot be decrypted.
    """
    if text is not None and not isinstance(text, str):
        raise InvalidArgument("JSON data must be a string")
    if not text or not text.strip():
        raise InvalidArgument("JSON data is required")
    if encrypted:
        data = await cipher.decrypt_json(text.strip())
    else:
        try:
            data = orjson.loads(text)
        except orjson.JSONDecodeError as err:
            raise InvalidFormat(f"Invalid JSON: {err}") from err
    if not isinstance(data, list):
        raise InvalidFormat("Invalid cookie data: expected an array")
    cookies = [_reinterpret(raw) for raw in data]
    invalid = sum(1 for c in cookies if not isinstance(c, CookieRecord))
    logger.debug(
        "Imported %d element(s), %d invalid (encrypted=%s)",
        len(cookies), invalid, encrypted,
    )
    return cookies
