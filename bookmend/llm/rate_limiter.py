"""Request pacing for provider calls.

Responsibilities:
- Enforce a minimum interval between requests sharing one provider/model key.
- Stay independent from retry policy and provider adapters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from time import monotonic, sleep
from typing import Callable


@dataclass(slots=True)
class RateLimiter:
    """Per-key minimum-interval limiter used around provider requests."""

    min_interval_seconds: float = 0.05
    clock: Callable[[], float] = monotonic
    sleeper: Callable[[float], None] = sleep
    _next_allowed_at: dict[str, float] = field(default_factory=dict)
    _lock: Lock = field(default_factory=Lock)

    def acquire(self, key: str) -> None:
        """Block until a request under `key` is allowed."""

        if self.min_interval_seconds <= 0.0:
            return
        with self._lock:
            now = self.clock()
            wait_seconds = self._next_allowed_at.get(key, 0.0) - now
            if wait_seconds > 0.0:
                self.sleeper(wait_seconds)
                now = self.clock()
            self._next_allowed_at[key] = now + self.min_interval_seconds
