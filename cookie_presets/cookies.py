"""
Cookie models — the cookie record shape shared by presets, exports and the
cookie jar, plus the aggregate result of a bulk application.

Wire names follow the browser cookie API (``httpOnly``, ``sameSite``,
``expirationDate``); Python attributes are snake_case. Both spellings are
accepted on input.
"""
from enum import Enum
from typing import Any, Optional
from collections.abc import Mapping

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import InvalidFormat


class SameSite(str, Enum):
    """Allowed values for a cookie's SameSite attribute."""

    NO_RESTRICTION = "no_restriction"
    LAX = "lax"
    STRICT = "strict"
    UNSET = "unset"

    @classmethod
    def normalize(cls, value: Any) -> "SameSite":
        """Map any value onto a SameSite member, ``unset`` when unrecognized."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (ValueError, TypeError):
            return cls.UNSET


def strip_leading_dot(domain: str) -> str:
    """Return ``domain`` without a leading ``.`` (``.example.com`` → ``example.com``)."""
    return domain[1:] if domain.startswith(".") else domain


def build_cookie_url(domain: str, secure: bool = False) -> str:
    """Build the URL a cookie write is issued against.

    Args:
        domain: Cookie domain, optionally with a leading dot.
        secure: Use ``https://`` when True, ``http://`` otherwise.

    Returns:
        The URL, e.g. ``https://example.com``.
    """
    protocol = "https://" if secure else "http://"
    return protocol + strip_leading_dot(domain)


class CookieRecord(BaseModel):
    """A single browser cookie.

    ``session=True`` means the cookie lives until the browser closes, so
    any ``expiration_date`` given alongside it is discarded.
    """

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", coerce_numbers_to_str=True,
    )

    name: str = ""
    value: str = ""
    domain: str = ""
    path: str = "/"
    secure: bool = False
    http_only: bool = Field(default=False, alias="httpOnly")
    same_site: SameSite = Field(default=SameSite.UNSET, alias="sameSite")
    expiration_date: Optional[float] = Field(default=None, alias="expirationDate")
    session: Optional[bool] = None

    @field_validator("name", "value", "domain", mode="before")
    @classmethod
    def _none_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("path", mode="before")
    @classmethod
    def _default_path(cls, v: Any) -> Any:
        return v or "/"

    @field_validator("secure", "http_only", mode="before")
    @classmethod
    def _default_flag(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("same_site", mode="before")
    @classmethod
    def _normalize_same_site(cls, v: Any) -> SameSite:
        return SameSite.normalize(v)

    @model_validator(mode="after")
    def _session_has_no_expiry(self) -> "CookieRecord":
        if self.session is None:
            self.session = self.expiration_date is None
        if self.session:
            self.expiration_date = None
        return self

    def to_wire(self) -> dict[str, Any]:
        """Return the export shape; ``expirationDate`` is omitted when absent."""
        data = self.model_dump(by_alias=True, mode="json")
        if data.get("expirationDate") is None:
            data.pop("expirationDate", None)
        return data

    def to_set_details(self, domain: Optional[str] = None) -> dict[str, Any]:
        """Build the Cookie Store write request for this record.

        Args:
            domain: Domain to rebind the cookie to; defaults to the
                record's own domain.

        Returns:
            Write details including the target ``url``.
        """
        target = domain or self.domain
        details: dict[str, Any] = {
            "url": build_cookie_url(target, self.secure),
            "name": self.name,
            "value": self.value,
            "domain": target,
            "path": self.path,
            "secure": self.secure,
            "httpOnly": self.http_only,
        }
        if self.same_site is not SameSite.UNSET:
            details["sameSite"] = self.same_site.value
        if not self.session and self.expiration_date is not None:
            details["expirationDate"] = self.expiration_date
        return details


class FailureDetail(BaseModel):
    """Why one cookie of a bulk application was not written."""

    cookie_name: str
    error_kind: str
    message: str = ""


class ApplyResult(BaseModel):
    """Aggregate outcome of writing a sequence of cookies."""

    applied_count: int = 0
    failed_count: int = 0
    failures: list[FailureDetail] = Field(default_factory=list)

    def record_success(self) -> None:
        self.applied_count += 1

    def record_failure(self, cookie_name: str, error_kind: str, message: str = "") -> None:
        self.failed_count += 1
        self.failures.append(
            FailureDetail(cookie_name=cookie_name, error_kind=error_kind, message=message)
        )

    @property
    def total(self) -> int:
        return self.applied_count + self.failed_count

    def to_dict(self) -> dict[str, Any]:
        """Summary used in dispatcher responses; ``errors`` only when non-empty."""
        data: dict[str, Any] = {
            "applied": self.applied_count,
            "failed": self.failed_count,
        }
        if self.failures:
            data["errors"] = [
                {"name": f.cookie_name, "kind": f.error_kind, "error": f.message}
                for f in self.failures
            ]
        return data


def parse_cookie(raw: Any) -> CookieRecord:
    """Reinterpret one decoded element as a CookieRecord.

    Missing ``path`` becomes ``/``, missing flags become False and any
    unrecognized ``sameSite`` becomes ``unset``.

    Raises:
        InvalidFormat: If ``raw`` is not an object or has ill-typed fields.
    """
    if isinstance(raw, CookieRecord):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidFormat(
            f"Invalid cookie data: expected an object, got {type(raw).__name__}"
        )
    try:
        return CookieRecord.model_validate(raw)
    except ValidationError as err:
        raise InvalidFormat(
            f"Invalid cookie data for {raw.get('name')!r}: "
            f"{err.error_count()} invalid field(s)"
        ) from err
