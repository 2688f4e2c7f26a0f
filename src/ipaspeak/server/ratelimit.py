"""Per-client sliding-window rate limiting for the speak routes."""

import collections
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

HOUR = 3600.0


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of counting one request against a client's window."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class RateLimiter:
    """Allow at most ``limit`` requests per client within a sliding window.

    A limit of 0 disables limiting. Rejected requests do not count against
    the window.
    """

    def __init__(
        self,
        limit: int,
        window: float = HOUR,
        now: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 0:
            raise ValueError(f"limit cannot be negative, got {limit}")
        self.limit = limit
        self.window = window
        self._now = now
        self._events: dict[str, collections.deque[float]] = {}
        self._next_sweep = now() + window

    @property
    def enabled(self) -> bool:
        return self.limit > 0

    @property
    def tracked_clients(self) -> int:
        return len(self._events)

    def hit(self, client: str) -> RateLimitDecision:
        """Count a request from ``client`` and decide whether it may proceed."""
        if not self.enabled:
            return RateLimitDecision(allowed=True, limit=0, remaining=0)

        current = self._now()
        cutoff = current - self.window
        events = self._events.setdefault(client, collections.deque())
        while events and events[0] <= cutoff:
            events.popleft()

        if len(events) >= self.limit:
            retry_after = max(1, math.ceil(events[0] + self.window - current))
            logger.warning(f"Rate limit exceeded for {client}; retry in {retry_after}s")
            return RateLimitDecision(
                allowed=False, limit=self.limit, remaining=0, retry_after=retry_after
            )

        events.append(current)
        if current >= self._next_sweep:
            self._sweep(cutoff)
            self._next_sweep = current + self.window
        return RateLimitDecision(
            allowed=True, limit=self.limit, remaining=self.limit - len(events)
        )

    def _sweep(self, cutoff: float) -> None:
        # Forget clients whose whole window has passed; runs at most once per window
        idle = [c for c, events in self._events.items() if not events or events[-1] <= cutoff]
        for client in idle:
            del self._events[client]
