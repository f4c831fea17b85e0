from __future__ import annotations

import time


class SystemClock:
    """Wall-clock seconds, clamped so readings never go backwards."""

    def __init__(self) -> None:
        self._last = 0

    def now(self) -> int:
        ts = int(time.time())
        if ts < self._last:
            ts = self._last
        self._last = ts
        return ts


class ManualClock:
    """Clock advanced explicitly; used by the replay runner and tests."""

    def __init__(self, start: int = 1_700_000_000):
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("clock cannot move backwards")
        self._now += int(seconds)
        return self._now

    def set(self, ts: int) -> None:
        if ts < self._now:
            raise ValueError(f"clock cannot move backwards ({ts} < {self._now})")
        self._now = int(ts)
