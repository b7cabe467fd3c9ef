"""Stateless token authentication package.

Exposes the token and CSRF services plus their result types so callers can
``from tokenauth import TokenService`` without reaching into submodules.
"""
from importlib.metadata import PackageNotFoundError, version

from .config import TokenConfig
from .domain.clock import Clock, FixedClock, SystemClock
from .domain.results import (
    CsrfToken,
    DecodedToken,
    ErrorKind,
    Failure,
    Identity,
    TokenPair,
    ValidationReason,
    ValidationResult,
    VerifyResult,
)
from .service.csrf_service import CsrfService
from .service.token_service import TokenService

try:  # Resolves once installed; plain checkouts fall back to a dev version.
    __version__ = version("tokenauth")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "Clock",
    "CsrfService",
    "CsrfToken",
    "DecodedToken",
    "ErrorKind",
    "Failure",
    "FixedClock",
    "Identity",
    "SystemClock",
    "TokenConfig",
    "TokenPair",
    "TokenService",
    "ValidationReason",
    "ValidationResult",
    "VerifyResult",
]
