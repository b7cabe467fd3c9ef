from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from ..domain.results import ValidationReason


class GenerateRequest(BaseModel):
    """Identity record to issue a token pair for."""
    identity: dict[str, Any]


class TokenPairResponse(BaseModel):
    """Issued tokens with their expiry instants (epoch ms)."""
    access_token: str
    date_access: int
    refresh_token: Optional[str] = None
    date_refresh: Optional[int] = None


class ValidateRequest(BaseModel):
    token: str
    kind: Literal["access", "refresh"] = "access"


class ValidateResponse(BaseModel):
    success: bool
    reason: ValidationReason


class VerifyRequest(BaseModel):
    """Identity plus the tokens the client presented for it."""
    identity: dict[str, Any]
    access_token: str
    refresh_token: Optional[str] = None


class VerifyResponse(BaseModel):
    verified: bool
    via_refresh: bool = False
    error_code: Optional[str] = None


class DecodeRequest(BaseModel):
    token: str


class DecodeResponse(BaseModel):
    """Unverified header and body of a token."""
    header: dict[str, Any]
    body: Any


class CsrfRequest(BaseModel):
    id: str = Field(..., min_length=1)


class CsrfResponse(BaseModel):
    csrf_token: str
    id: str
    created_at: int


class CsrfVerifyRequest(BaseModel):
    """Context retained from issuance plus the token to check."""
    id: str
    created_at: int
    csrf_token: str


class CsrfVerifyResponse(BaseModel):
    valid: bool
