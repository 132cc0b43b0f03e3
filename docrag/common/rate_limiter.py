"""Token-bucket limiter for outbound provider requests."""

from __future__ import annotations

import asyncio
import time


class RateLimiter:
    """Allow at most ``requests_per_minute`` embedding requests per minute.

    The bucket starts full, so a burst up to capacity goes through at once.
    ``None`` or a non-positive value disables limiting.
    """

    def __init__(self, requests_per_minute: int | None) -> None:
        enabled = bool(requests_per_minute and requests_per_minute > 0)
        self.capacity: int | None = requests_per_minute if enabled else None
        self.tokens: float | None = float(requests_per_minute) if enabled else None
        self.refill_interval: float | None = 60.0 / requests_per_minute if enabled else None
        self.last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.capacity is not None

    def _take(self) -> float:
        """Consume a token if one is available; otherwise return seconds to wait."""
        assert self.capacity is not None and self.refill_interval is not None and self.tokens is not None
        earned = int((time.monotonic() - self.last_refill) // self.refill_interval)
        if earned:
            self.tokens = min(float(self.capacity), self.tokens + earned)
            self.last_refill += earned * self.refill_interval
        if self.tokens >= 1:
            self.tokens -= 1
            return 0.0
        remaining = self.refill_interval - (time.monotonic() - self.last_refill)
        return remaining if remaining > 0 else self.refill_interval

    async def acquire(self) -> None:
        if not self.enabled:
            return
        while True:
            async with self._lock:
                delay = self._take()
            if not delay:
                return
            await asyncio.sleep(delay)
