from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError

from ..domain.clock import Clock, SystemClock
from ..domain.codec import to_json
from ..domain.errors import CorruptedInputError, MissingKeyError, SignatureMismatchError, TokenError
from ..domain.results import CsrfToken, Failure
from ..domain.signer import SignatureEncoding, sign, signatures_match
from ..logging_conf import get_logger, report_error
from .token_service import ErrorSink

__all__ = ["CsrfService"]

logger = get_logger("service.csrf")


def _digest(key: Any, data: Any) -> str:
    if key is None or key == "":
        raise MissingKeyError("CSRF key is required")
    if isinstance(data, CsrfToken):
        data = {"id": data.id, "createdAt": data.created_at}
    elif not isinstance(data, Mapping):
        raise CorruptedInputError("CSRF data must be an object with id and createdAt")
    return sign(to_json(dict(data)), key, SignatureEncoding.hex)


class CsrfService:
    """Anti-forgery tokens: a hex HMAC over ``{"id", "createdAt"}``.

    The digest carries no payload, so callers keep `id` and `created_at`
    (e.g. in session state) and hand them back to `verify_csrf`.
    """

    def __init__(self, clock: Optional[Clock] = None, *, on_error: Optional[ErrorSink] = None) -> None:
        self._clock = clock or SystemClock()
        self._on_error = on_error or report_error

    def generate_csrf(self, id: str | int, key: Any) -> CsrfToken | Failure:
        created_at = self._clock.now_ms()
        try:
            if isinstance(id, bool) or not isinstance(id, (str, int)):
                raise CorruptedInputError(f"CSRF id must be a string or integer, got {type(id).__name__}")
            digest = _digest(key, {"id": id, "createdAt": created_at})
            token = CsrfToken(csrf_token=digest, id=id, created_at=created_at)
        except ValidationError as e:
            return self._fail("CsrfService.generate_csrf", CorruptedInputError(str(e)))
        except TokenError as e:
            return self._fail("CsrfService.generate_csrf", e)
        logger.info("csrf.generate", extra={"event": "csrf_generate"})
        return token

    def _fail(self, context: str, error: TokenError) -> Failure:
        self._on_error(context, error)
        return Failure(kind=error.code, message=str(error))

    def verify_csrf(self, key: Any, data: Mapping[str, Any] | CsrfToken, token: Any) -> bool:
        """True iff `token` is the digest of `data` under `key`."""
        try:
            expected = _digest(key, data)
            if not signatures_match(expected, token):
                raise SignatureMismatchError("CSRF token does not match")
        except TokenError as e:
            self._on_error("CsrfService.verify_csrf", e)
            return False
        return True
