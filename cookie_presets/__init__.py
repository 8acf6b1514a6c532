"""Cookie Presets.

Encrypted, named snapshots of browser cookie sets and the protocol that
writes them back onto a cookie jar.
"""
from .version import __version__
from .cookies import (
    ApplyResult,
    CookieRecord,
    FailureDetail,
    SameSite,
    build_cookie_url,
    parse_cookie,
)
from .exceptions import (
    AlreadyExists,
    CookiePresetsError,
    CookieStoreError,
    DecryptionError,
    InvalidArgument,
    InvalidFormat,
    NotFound,
    StorageUnavailable,
)
from .storage import FileBlobStore, MemoryBlobStore, MemoryCookieStore
from .apply import apply_cookies, apply_preset
from .codec import export_cookies, import_cookies
from .manager import CookieManager

__all__ = (
    "__version__",
    "ApplyResult",
    "CookieRecord",
    "FailureDetail",
    "SameSite",
    "build_cookie_url",
    "parse_cookie",
    "AlreadyExists",
    "CookiePresetsError",
    "CookieStoreError",
    "DecryptionError",
    "InvalidArgument",
    "InvalidFormat",
    "NotFound",
    "StorageUnavailable",
    "FileBlobStore",
    "MemoryBlobStore",
    "MemoryCookieStore",
    "apply_cookies",
    "apply_preset",
    "export_cookies",
    "import_cookies",
    "CookieManager",
)
