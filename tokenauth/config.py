"""Token lifetimes, issuer domain and demo signing keys.

Configuration is read from the environment (or a JSON file named by
TOKEN_CONFIG_FILE) once per process and handed to services explicitly.
"""
from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

__all__ = [
    "TokenConfig",
    "SigningKeys",
    "load_config",
    "load_config_file",
    "get_settings",
    "get_signing_keys",
]

# Keys used by older deployments that stored config as DOMAIN/LTT/LTRT.
_LEGACY_KEYS = {
    "DOMAIN": "domain",
    "LTT": "accessLifetimeDays",
    "LTRT": "refreshLifetimeDays",
}


class TokenConfig(BaseModel):
    """Immutable token settings shared by every service instance."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    domain: str = "localhost"
    access_lifetime_days: float = Field(default=1, gt=0, alias="accessLifetimeDays")
    refresh_lifetime_days: float = Field(default=30, gt=0, alias="refreshLifetimeDays")


class SigningKeys(BaseModel):
    """Keys the HTTP layer signs with; the core always receives keys explicitly."""

    model_config = ConfigDict(frozen=True)

    access_key: Optional[str] = None
    refresh_key: Optional[str] = None
    csrf_key: Optional[str] = None


def _float_from_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number") from e


def load_config_file(path: str | os.PathLike[str]) -> TokenConfig:
    """Load a `TokenConfig` from a JSON file.

    Raises:
        ValueError: if the file is unreadable, not JSON, or fails validation.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"cannot read token config from {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError(f"token config in {path} must be a JSON object")
    data = {_LEGACY_KEYS.get(k, k): v for k, v in raw.items()}
    try:
        return TokenConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"invalid token config in {path}: {e}") from e


def load_config(path: str | os.PathLike[str] | None = None) -> TokenConfig:
    """Build a `TokenConfig` from `path`, TOKEN_CONFIG_FILE, or TOKEN_* env vars."""
    path = path or os.getenv("TOKEN_CONFIG_FILE") or None
    if path:
        return load_config_file(path)
    try:
        return TokenConfig(
            domain=os.getenv("TOKEN_DOMAIN", "localhost"),
            access_lifetime_days=_float_from_env("TOKEN_ACCESS_LIFETIME_DAYS", 1),
            refresh_lifetime_days=_float_from_env("TOKEN_REFRESH_LIFETIME_DAYS", 30),
        )
    except ValidationError as e:
        raise ValueError(f"token lifetimes must be positive: {e}") from e


@lru_cache(maxsize=1)
def get_settings() -> TokenConfig:
    """Process-wide config, built on first use and never mutated."""
    return load_config()


def get_signing_keys() -> SigningKeys:
    return SigningKeys(
        access_key=os.getenv("ACCESS_KEY") or None,
        refresh_key=os.getenv("REFRESH_KEY") or None,
        csrf_key=os.getenv("CSRF_KEY") or None,
    )
