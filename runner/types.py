from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class IssuedPair:
    """Tokens returned by POST /tokens during the smoke run."""

    access_token: str
    date_access: int
    refresh_token: Optional[str] = None
    date_refresh: Optional[int] = None


@dataclass
class StepResult:
    name: str
    ok: bool
    detail: str = ""


class SmokeError(RuntimeError):
    """Raised when the smoke flow cannot proceed (e.g., health never ready)."""


class IssueError(SmokeError):
    """Raised when issuing tokens fails after retries."""


class CheckError(SmokeError):
    """Raised when a verify/validate call fails at the HTTP level."""
