"""
Preset Application — Writes a decrypted cookie list onto a Cookie Store.

Cookies are written one at a time, in order. A failed write is counted and
recorded, and processing moves on to the next cookie; nothing already
written is rolled back. An element that is not a usable cookie record is
recorded the same way, with ``invalid_cookie`` as its error kind.

Security Note:
    Never log cookie values. Only log cookie names and domains.
"""
import logging
from typing import Any, Optional
from collections.abc import Iterable, Mapping

from .cookies import ApplyResult, parse_cookie
from .exceptions import CookieStoreError, InvalidArgument, InvalidFormat

logger = logging.getLogger("cookie_presets.apply")


def _raw_name(raw: Any) -> str:
    name = raw.get("name") if isinstance(raw, Mapping) else None
    return "" if name is None else str(name)


async def apply_cookies(
    cookie_store,
    cookies: Iterable[Any],
    target_domain: Optional[str] = None,
) -> ApplyResult:
    """Write every cookie to the Cookie Store, collecting per-cookie outcomes.

    Args:
        cookie_store: Cookie Store capability.
        cookies: ``CookieRecord`` instances or raw cookie mappings, in order.
        target_domain: Domain every cookie is rebound to; when None each
            record keeps its own domain.

    Returns:
        ApplyResult with applied/failed counts and failure details.
    """
    result = ApplyResult()
    for raw in cookies:
        try:
            cookie = parse_cookie(raw)
        except InvalidFormat as err:
            name = _raw_name(raw)
            logger.warning("Skipping invalid cookie record: name=%s", name)
            result.record_failure(name, "invalid_cookie", str(err))
            continue
        details = cookie.to_set_details(target_domain)
        try:
            await cookie_store.set(details)
        except CookieStoreError as err:
            logger.warning(
                "Cookie write failed: name=%s domain=%s reason=%s",
                cookie.name, details["domain"], err.reason,
            )
            result.record_failure(cookie.name, err.reason, str(err))
        except Exception as err:
            logger.error(
                "Unexpected error writing cookie name=%s domain=%s: %s",
                cookie.name, details["domain"], err,
            )
            result.record_failure(cookie.name, type(err).__name__, str(err))
        else:
            result.record_success()
    return result


async def apply_preset(
    presets,
    cookie_store,
    name: str,
    target_domain: str,
) -> ApplyResult:
    """Load preset ``name`` and write its cookies onto ``target_domain``.

    Each cookie is written against ``https://`` when secure, ``http://``
    otherwise, followed by the target domain without a leading dot.

    Args:
        presets: PresetStore holding the preset.
        cookie_store: Cookie Store capability.
        name: Preset name.
        target_domain: Domain the cookies are rebound to.

    Returns:
        ApplyResult for the whole preset.

    Raises:
        InvalidArgument: If ``target_domain`` is empty or not a string.
        NotFound: If the preset does not exist.
        DecryptionError: If the preset cannot be decrypted.
    """
    if not isinstance(target_domain, str) or not target_domain.strip():
        raise InvalidArgument("Domain is required")
    target_domain = target_domain.strip()
    cookies = await presets.load(name)
    logger.info(
        "Applying preset %s to %s (%d cookie(s))", name, target_domain, len(cookies),
    )
    result = await apply_cookies(cookie_store, cookies, target_domain)
    logger.info(
        "Preset %s applied: %d applied, %d failed",
        name, result.applied_count, result.failed_count,
    )
    return result
