from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from ..config import SigningKeys, get_settings, get_signing_keys
from ..domain.results import Failure
from ..logging_conf import get_logger
from ..service.csrf_service import CsrfService
from ..service.token_service import TokenService
from .models import (
    CsrfRequest,
    CsrfResponse,
    CsrfVerifyRequest,
    CsrfVerifyResponse,
    DecodeRequest,
    DecodeResponse,
    GenerateRequest,
    TokenPairResponse,
    ValidateRequest,
    ValidateResponse,
    VerifyRequest,
    VerifyResponse,
)

router = APIRouter()
logger = get_logger("api")


@lru_cache(maxsize=1)
def get_token_service() -> TokenService:
    return TokenService(get_settings())


@lru_cache(maxsize=1)
def get_csrf_service() -> CsrfService:
    return CsrfService()


def _require_key(key: Optional[str], name: str) -> str:
    if not key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error_code": "missing_key", "error_message": f"{name} is not configured"},
        )
    return key


def _bad_request(failure: Failure) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error_code": failure.kind.value, "error_message": failure.message},
    )


@router.post("/tokens", response_model=TokenPairResponse, summary="Issue an access/refresh token pair")
async def generate_tokens(
    req: GenerateRequest,
    service: TokenService = Depends(get_token_service),
    keys: SigningKeys = Depends(get_signing_keys),
) -> TokenPairResponse:
    """Sign the identity into an access token, plus a refresh token if REFRESH_KEY is set."""
    access_key = _require_key(keys.access_key, "ACCESS_KEY")
    pair = service.generate(req.identity, access_key, keys.refresh_key)
    if isinstance(pair, Failure):
        raise _bad_request(pair)
    return TokenPairResponse(**pair.model_dump())


@router.post("/tokens/validate", response_model=ValidateResponse, summary="Check signature and expiry")
async def validate_token(
    req: ValidateRequest,
    service: TokenService = Depends(get_token_service),
    keys: SigningKeys = Depends(get_signing_keys),
) -> ValidateResponse:
    if req.kind == "refresh":
        key = _require_key(keys.refresh_key, "REFRESH_KEY")
    else:
        key = _require_key(keys.access_key, "ACCESS_KEY")
    result = service.validate(req.token, key)
    return ValidateResponse(success=result.success, reason=result.reason)


@router.post("/tokens/verify", response_model=VerifyResponse, summary="Verify tokens against an identity")
async def verify_tokens(
    req: VerifyRequest,
    service: TokenService = Depends(get_token_service),
    keys: SigningKeys = Depends(get_signing_keys),
) -> VerifyResponse:
    """Verify the access token, falling back to the refresh token when one is sent."""
    access_key = _require_key(keys.access_key, "ACCESS_KEY")
    refresh_key = keys.refresh_key if req.refresh_token is not None else None
    result = service.verify(req.identity, access_key, req.access_token, refresh_key, req.refresh_token)
    logger.info(
        "tokens.verify",
        extra={"event": "tokens_verify", "verified": result.ok, "via_refresh": result.via_refresh},
    )
    return VerifyResponse(
        verified=result.ok,
        via_refresh=result.via_refresh,
        error_code=result.failure.kind.value if result.failure else None,
    )


@router.post("/tokens/decode", response_model=DecodeResponse, summary="Decode a token without verifying it")
async def decode_token(
    req: DecodeRequest,
    service: TokenService = Depends(get_token_service),
) -> DecodeResponse:
    decoded = service.decode(req.token)
    if isinstance(decoded, Failure):
        raise _bad_request(decoded)
    return DecodeResponse(header=decoded.header, body=decoded.body)


@router.post("/csrf", response_model=CsrfResponse, summary="Issue a CSRF token")
async def generate_csrf(
    req: CsrfRequest,
    service: CsrfService = Depends(get_csrf_service),
    keys: SigningKeys = Depends(get_signing_keys),
) -> CsrfResponse:
    """Return the digest along with the id and created_at the client must echo back."""
    csrf_key = _require_key(keys.csrf_key, "CSRF_KEY")
    token = service.generate_csrf(req.id, csrf_key)
    if isinstance(token, Failure):
        raise _bad_request(token)
    return CsrfResponse(csrf_token=token.csrf_token, id=str(token.id), created_at=token.created_at)


@router.post("/csrf/verify", response_model=CsrfVerifyResponse, summary="Verify a CSRF token")
async def verify_csrf(
    req: CsrfVerifyRequest,
    service: CsrfService = Depends(get_csrf_service),
    keys: SigningKeys = Depends(get_signing_keys),
) -> CsrfVerifyResponse:
    csrf_key = _require_key(keys.csrf_key, "CSRF_KEY")
    valid = service.verify_csrf(csrf_key, {"id": req.id, "createdAt": req.created_at}, req.csrf_token)
    return CsrfVerifyResponse(valid=valid)
