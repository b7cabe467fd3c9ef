from __future__ import annotations

from enum import Enum

__all__ = [
    "ErrorKind",
    "TokenError",
    "MalformedTokenError",
    "CorruptedInputError",
    "SignatureMismatchError",
    "MissingKeyError",
    "IdentityMismatchError",
]


class ErrorKind(str, Enum):
    malformed_token = "malformed_token"
    corrupted_input = "corrupted_input"
    signature_mismatch = "signature_mismatch"
    missing_key = "missing_key"
    identity_mismatch = "identity_mismatch"


# ------------------------
# Errors
# ------------------------
class TokenError(ValueError):
    """Base class for token-related errors.

    The `code` attribute maps each error to a stable machine code; services
    turn it into a `Failure` so nothing escapes past their public methods.
    """

    code: ErrorKind = ErrorKind.corrupted_input


class MalformedTokenError(TokenError):
    """Token has fewer than three dot-separated segments (or is empty)."""

    code = ErrorKind.malformed_token


class CorruptedInputError(TokenError):
    """A segment is not valid base64 / UTF-8 / JSON."""

    code = ErrorKind.corrupted_input


class SignatureMismatchError(TokenError):
    code = ErrorKind.signature_mismatch


class MissingKeyError(TokenError):
    code = ErrorKind.missing_key


class IdentityMismatchError(TokenError):
    code = ErrorKind.identity_mismatch
