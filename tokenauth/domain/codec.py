from __future__ import annotations

import base64
import binascii
import json
from typing import Any
from urllib.parse import quote, unquote

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError

from .errors import CorruptedInputError, MalformedTokenError
from .results import DecodedToken

__all__ = [
    "ALGORITHM_LABEL",
    "TokenHeader",
    "TokenClaims",
    "to_json",
    "encode_segments",
    "assemble",
    "split_token",
    "signing_input",
    "decode_token",
]

# Header label only; the signature is always HMAC-SHA512.
ALGORITHM_LABEL = "SHA256"

# Characters encodeURIComponent leaves untouched.
_URI_SAFE = "-_.!~*'()"


# ------------------------
# Schema
# ------------------------
class TokenHeader(BaseModel):
    alg: str = ALGORITHM_LABEL


class TokenClaims(BaseModel):
    """Payload of an access or refresh token.

    `gen` and `exp` are epoch milliseconds; `data` is the identity record the
    token was issued for, compared field-by-field on verification.
    """

    iss: str
    gen: int
    exp: int
    data: Any


# ------------------------
# Internals
# ------------------------

def to_json(value: Any) -> str:
    """Compact JSON in insertion order, matching what browsers emit."""
    try:
        if isinstance(value, BaseModel):
            value = value.model_dump(mode="json")
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError, PydanticSerializationError) as e:
        raise CorruptedInputError(f"Value is not JSON serializable: {e}") from e


def _b64encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _parse_segment(segment: str, what: str) -> Any:
    try:
        raw = base64.b64decode(segment.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise CorruptedInputError(f"Token {what} is not valid base64") from e

    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptedInputError(f"Token {what} JSON is malformed") from e


# ------------------------
# Public encode/decode
# ------------------------

def encode_segments(header: Any, payload: Any) -> str:
    """Return ``b64(header) + "." + b64(payload)``, the signing input."""
    return f"{_b64encode(to_json(header))}.{_b64encode(to_json(payload))}"


def assemble(prefix: str, signature: str) -> str:
    """Append the signature segment and percent-encode the whole token."""
    return quote(f"{prefix}.{signature}", safe=_URI_SAFE)


def split_token(token: Any) -> list[str]:
    """Percent-decode `token` and split it into its dot-separated segments.

    Raises:
        MalformedTokenError: empty input or fewer than three segments.
        CorruptedInputError: invalid percent-encoding.
    """
    if not isinstance(token, str) or not token:
        raise MalformedTokenError("Token is empty")
    try:
        segments = unquote(token, errors="strict").split(".")
    except UnicodeDecodeError as e:
        raise CorruptedInputError("Token percent-encoding is malformed") from e
    if len(segments) < 3:
        raise MalformedTokenError(f"Token has {len(segments)} segments, expected 3")
    return segments


def signing_input(segments: list[str]) -> str:
    return f"{segments[0]}.{segments[1]}"


def decode_token(token: Any) -> DecodedToken:
    """Decode a compact token into header, body and opaque signature.

    Raises a specific `TokenError` subclass if parsing fails.
    """
    segments = split_token(token)
    header = _parse_segment(segments[0], "header")
    if not isinstance(header, dict):
        raise CorruptedInputError("Token header is not a JSON object")
    body = _parse_segment(segments[1], "payload")
    return DecodedToken(header=header, body=body, signature=segments[2])
