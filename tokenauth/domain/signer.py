from __future__ import annotations

import base64
import hashlib
import hmac
from enum import Enum
from typing import Any

__all__ = [
    "SignatureEncoding",
    "sign",
    "signatures_match",
]


class SignatureEncoding(str, Enum):
    base64 = "base64"
    hex = "hex"


def sign(message: str, key: Any, encoding: SignatureEncoding = SignatureEncoding.base64) -> str:
    """Return HMAC-SHA512 of `message` keyed by `str(key)`.

    base64 is used for access/refresh token signatures, hex for CSRF digests.
    """
    digest = hmac.new(str(key).encode("utf-8"), message.encode("utf-8"), hashlib.sha512)
    if encoding is SignatureEncoding.hex:
        return digest.hexdigest()
    return base64.b64encode(digest.digest()).decode("ascii")


def signatures_match(expected: str, actual: Any) -> bool:
    """Constant-time comparison; non-string input never matches."""
    if not isinstance(actual, str):
        return False
    return hmac.compare_digest(expected.encode("utf-8"), actual.encode("utf-8"))
