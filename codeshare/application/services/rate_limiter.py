from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict

from ...domain.clock import Clock, utc_now
from ...domain.models import RateLimitDecision


@dataclass(slots=True)
class _Window:
    started_at: datetime
    count: int


class LoginRateLimiter:
    """Caps attempts per identifier inside a window that opens at the first attempt.

    State lives in process memory only and is lost on restart. Windows that
    have elapsed are dropped on the next check or purge.
    """

    def __init__(self, max_attempts: int = 5, window: timedelta = timedelta(minutes=15), clock: Clock = utc_now) -> None:
        self._max_attempts = max_attempts
        self._window = window
        self._clock = clock
        self._attempts: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def check(self, identifier: str) -> RateLimitDecision:
        key = identifier.strip().lower()
        now = self._clock()
        with self._lock:
            self._drop_elapsed(now)
            window = self._attempts.get(key)
            if window is None:
                self._attempts[key] = _Window(started_at=now, count=1)
                return RateLimitDecision(allowed=True)
            if window.count >= self._max_attempts:
                return RateLimitDecision(allowed=False, retry_after=window.started_at + self._window)
            window.count += 1
            return RateLimitDecision(allowed=True)

    def reset(self, identifier: str) -> None:
        with self._lock:
            self._attempts.pop(identifier.strip().lower(), None)

    def purge_expired(self) -> int:
        """Forget identifiers whose window has elapsed; returns how many were dropped."""
        with self._lock:
            return self._drop_elapsed(self._clock())

    def _drop_elapsed(self, now: datetime) -> int:
        stale = [key for key, window in self._attempts.items() if now - window.started_at >= self._window]
        for key in stale:
            del self._attempts[key]
        return len(stale)
