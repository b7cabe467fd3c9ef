"""Tagged result types returned by the services.

Failures are values, not exceptions: `Failure` and a failed `VerifyResult` are
falsy so call sites can write ``if not result:`` and still inspect `.kind`.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import ErrorKind

__all__ = [
    "ErrorKind",
    "Failure",
    "ValidationReason",
    "ValidationResult",
    "VerifyResult",
    "DecodedToken",
    "TokenPair",
    "CsrfToken",
    "Identity",
]


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str = ""

    def __bool__(self) -> bool:
        return False


class ValidationReason(str, Enum):
    valid = "valid"
    expired = "expired"
    invalid = "invalid"
    corrupted = "corrupted"


class ValidationResult(BaseModel):
    """Outcome of `TokenService.validate`.

    An expired token reports ``success=True`` with ``reason=expired``; only a
    corrupted or wrongly signed token reports ``success=False``.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    reason: ValidationReason


@dataclass(frozen=True)
class VerifyResult:
    ok: bool
    via_refresh: bool = False
    failure: Optional[Failure] = None

    def __bool__(self) -> bool:
        return self.ok


class DecodedToken(BaseModel):
    """Header and body of a decoded token; the signature stays opaque."""

    model_config = ConfigDict(frozen=True)

    header: dict[str, Any]
    body: Any
    signature: str


class TokenPair(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    date_access: int = Field(alias="dateAccess")
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")
    date_refresh: Optional[int] = Field(default=None, alias="dateRefresh")


class CsrfToken(BaseModel):
    """Hex digest plus the context the caller keeps to re-verify it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    csrf_token: str = Field(alias="csrfToken")
    id: str | int
    created_at: int = Field(alias="createdAt")


class Identity(BaseModel):
    """Convenience identity record; extra fields ride along into token data."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    user_id: str | int = Field(alias="userId")
    user_key: str = Field(alias="userKey")
    user_rkey: str = Field(alias="userRkey")
