from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from typing import Any, Optional

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError, to_jsonable_python

from ..config import TokenConfig
from ..domain.clock import MS_PER_DAY, Clock, SystemClock
from ..domain.codec import (
    TokenClaims,
    TokenHeader,
    assemble,
    decode_token,
    encode_segments,
    signing_input,
    split_token,
)
from ..domain.errors import (
    CorruptedInputError,
    IdentityMismatchError,
    MissingKeyError,
    SignatureMismatchError,
    TokenError,
)
from ..domain.results import (
    DecodedToken,
    Failure,
    TokenPair,
    ValidationReason,
    ValidationResult,
    VerifyResult,
)
from ..domain.signer import sign, signatures_match
from ..logging_conf import get_logger, report_error

__all__ = [
    "REQUIRED_IDENTITY_FIELDS",
    "ErrorSink",
    "TokenService",
    "identity_record",
]

logger = get_logger("service.token")

REQUIRED_IDENTITY_FIELDS = ("userId", "userKey", "userRkey")

ErrorSink = Callable[[str, BaseException], None]


# ------------------------
# Identity helpers
# ------------------------

def identity_record(identity: Any) -> dict[str, Any]:
    """Return a fresh JSON-mode dict of `identity` keyed by its wire field names.

    Accepts mappings, pydantic models (dumped by alias), dataclasses and plain
    objects. Values take the form they have inside a token (dates become ISO
    strings, tuples become lists) so claims and identity compare equal. The
    caller's record is never mutated.

    Raises:
        IdentityMismatchError: `identity` is not a record.
        CorruptedInputError: a field has no JSON form.
    """
    if isinstance(identity, Mapping):
        fields = dict(identity)
    elif isinstance(identity, BaseModel):
        fields = identity
    elif dataclasses.is_dataclass(identity) and not isinstance(identity, type):
        fields = identity
    elif hasattr(identity, "__dict__"):
        fields = dict(vars(identity))
    else:
        raise IdentityMismatchError(f"Identity of type {type(identity).__name__} is not a record")
    try:
        record = to_jsonable_python(fields, by_alias=True)
    except (PydanticSerializationError, ValueError) as e:
        raise CorruptedInputError(f"Identity is not JSON serializable: {e}") from e
    if not isinstance(record, dict):
        raise IdentityMismatchError(f"Identity of type {type(identity).__name__} is not a record")
    return record


def _require_capabilities(fields: Mapping[str, Any]) -> None:
    missing = [name for name in REQUIRED_IDENTITY_FIELDS if name not in fields]
    if missing:
        raise IdentityMismatchError(f"Identity is missing {', '.join(missing)}")


def _token_data(token: DecodedToken) -> Mapping[str, Any]:
    body = token.body
    data = body.get("data") if isinstance(body, dict) else None
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise IdentityMismatchError("Token data is not an object")
    return data


def _check_binding(data: Mapping[str, Any], against: Mapping[str, Any], what: str) -> None:
    """Every field carried in `data` must equal the same field of `against`."""
    for name, value in data.items():
        if against.get(name) != value:
            raise IdentityMismatchError(f"Token field {name!r} does not match {what}")


def _is_expired(body: Any, now_ms: int) -> bool:
    exp = body.get("exp") if isinstance(body, dict) else None
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return False
    return exp < now_ms


# ------------------------
# Service
# ------------------------

class TokenService:
    """Issue and check HMAC-SHA512 signed access/refresh tokens.

    Public methods never raise: failures come back as `Failure`,
    `ValidationResult(success=False)` or a falsy `VerifyResult`, and are
    reported to `on_error` with the name of the operation.
    """

    def __init__(
        self,
        config: TokenConfig,
        clock: Optional[Clock] = None,
        *,
        on_error: Optional[ErrorSink] = None,
    ) -> None:
        self._config = config
        self._clock = clock or SystemClock()
        self._on_error = on_error or report_error

    @property
    def config(self) -> TokenConfig:
        return self._config

    def _fail(self, context: str, error: TokenError) -> Failure:
        self._on_error(context, error)
        return Failure(kind=error.code, message=str(error))

    def _expiry(self, now: int, days: float) -> int:
        return now + int(days * MS_PER_DAY)

    def _encode(self, data: Any, key: Any, *, role: str = "signing") -> str:
        if key is None or key == "":
            raise MissingKeyError(f"{role} key is required")
        prefix = encode_segments(TokenHeader(), data)
        return assemble(prefix, sign(prefix, key))

    # ------------------------
    # Operations
    # ------------------------

    def encode(self, data: Any, key: Any) -> str | Failure:
        """Sign `data` into a percent-encoded compact token."""
        try:
            return self._encode(data, key)
        except TokenError as e:
            return self._fail("TokenService.encode", e)

    def decode(self, token: Any) -> DecodedToken | Failure:
        """Parse a token without checking its signature or expiry."""
        try:
            return decode_token(token)
        except TokenError as e:
            return self._fail("TokenService.decode", e)

    def validate(self, token: Any, key: Any) -> ValidationResult:
        """Check expiry and signature of `token`.

        Outcomes:
          corrupted -> success=False (token could not be decoded)
          expired   -> success=True  (checked before the signature)
          invalid   -> success=False (signature mismatch or no key)
          valid     -> success=True
        """
        try:
            decoded = decode_token(token)
            segments = split_token(token)
        except TokenError as e:
            self._on_error("TokenService.validate", e)
            return ValidationResult(success=False, reason=ValidationReason.corrupted)

        if _is_expired(decoded.body, self._clock.now_ms()):
            return ValidationResult(success=True, reason=ValidationReason.expired)

        if key is None or key == "":
            self._on_error("TokenService.validate", MissingKeyError("validation key is required"))
            return ValidationResult(success=False, reason=ValidationReason.invalid)

        expected = sign(signing_input(segments), key)
        if not signatures_match(expected, decoded.signature):
            self._on_error(
                "TokenService.validate",
                SignatureMismatchError("Token signature does not match"),
            )
            return ValidationResult(success=False, reason=ValidationReason.invalid)

        return ValidationResult(success=True, reason=ValidationReason.valid)

    def verify(
        self,
        identity: Any,
        access_key: Any,
        access_token: Any,
        refresh_key: Any = None,
        refresh_token: Any = None,
    ) -> VerifyResult:
        """Check that `access_token` (or, failing that, `refresh_token`) vouches for `identity`.

        The access token is accepted when it validates as valid or expired.
        Otherwise, if a refresh key and token were supplied, the refresh token
        must carry the same data as the access token and validate in turn.
        """
        try:
            fields = identity_record(identity)
            _require_capabilities(fields)

            access = decode_token(access_token)
            access_data = _token_data(access)
            _check_binding(access_data, fields, "identity")

            if self.validate(access_token, access_key).success:
                return VerifyResult(ok=True)

            if refresh_key is None or refresh_token is None:
                raise SignatureMismatchError("Access token rejected and no refresh token supplied")

            refresh = decode_token(refresh_token)
            _check_binding(access_data, _token_data(refresh), "refresh token")

            if not self.validate(refresh_token, refresh_key).success:
                raise SignatureMismatchError("Refresh token rejected")
        except TokenError as e:
            return VerifyResult(ok=False, failure=self._fail("TokenService.verify", e))

        logger.info("token.refresh_fallback", extra={"event": "token_refresh_fallback"})
        return VerifyResult(ok=True, via_refresh=True)

    def generate(self, identity: Any, access_key: Any, refresh_key: Any = None) -> TokenPair | Failure:
        """Issue an access token, plus a refresh token when `refresh_key` is given."""
        try:
            now = self._clock.now_ms()
            claims = TokenClaims(
                iss=self._config.domain,
                gen=now,
                exp=self._expiry(now, self._config.access_lifetime_days),
                data=identity_record(identity),
            )
            access_token = self._encode(claims, access_key, role="access")

            if not refresh_key:
                logger.info(
                    "token.generate",
                    extra={"event": "token_generate", "iss": claims.iss, "refresh": False},
                )
                return TokenPair(access_token=access_token, date_access=claims.exp)

            refresh_claims = claims.model_copy(
                update={"exp": self._expiry(now, self._config.refresh_lifetime_days)}
            )
            refresh_token = self._encode(refresh_claims, refresh_key, role="refresh")
        except TokenError as e:
            return self._fail("TokenService.generate", e)

        logger.info(
            "token.generate",
            extra={"event": "token_generate", "iss": claims.iss, "refresh": True},
        )
        return TokenPair(
            access_token=access_token,
            date_access=claims.exp,
            refresh_token=refresh_token,
            date_refresh=refresh_claims.exp,
        )
