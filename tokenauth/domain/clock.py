from __future__ import annotations

import time
from typing import Protocol

__all__ = [
    "Clock",
    "SystemClock",
    "FixedClock",
    "MS_PER_DAY",
]

MS_PER_DAY = 86_400_000


class Clock(Protocol):
    def now_ms(self) -> int: ...


class SystemClock:
    """Wall clock in epoch milliseconds."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class FixedClock:
    """Clock pinned to a given instant; `advance()` moves it forward.

    Used by tests and the demo app to make expiry deterministic.
    """

    def __init__(self, now_ms: int) -> None:
        self._now = int(now_ms)

    def now_ms(self) -> int:
        return self._now

    def advance(self, ms: int) -> None:
        self._now += int(ms)
