import asyncio
import time
from collections import defaultdict, deque
from typing import Deque, Dict, NamedTuple, Optional


class RateLimitResult(NamedTuple):
    allowed: bool
    remaining: int
    retry_after: Optional[float]


class InMemoryRateLimiter:
    """Sliding window limiter keeping request timestamps per key in process memory."""

    def __init__(self, clock=time.monotonic):
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()
        self._clock = clock

    def _evict(self, hits: Deque[float], now: float, window: int) -> None:
        while hits and hits[0] <= now - window:
            hits.popleft()

    async def hit(self, key: str, limit: int, window: int) -> RateLimitResult:
        """Record one request for ``key`` unless it is already over ``limit``."""
        async with self._lock:
            now = self._clock()
            hits = self._hits[key]
            self._evict(hits, now, window)

            if len(hits) < limit:
                hits.append(now)
                return RateLimitResult(True, limit - len(hits), None)

            retry_after = max(0.0, window - (now - hits[0]))
            return RateLimitResult(False, 0, retry_after)

    async def reset(self, key: str) -> None:
        async with self._lock:
            self._hits.pop(key, None)

    async def cleanup_expired(self, window: int) -> None:
        """Drop keys whose requests all fell out of the window."""
        async with self._lock:
            now = self._clock()
            for key in list(self._hits):
                self._evict(self._hits[key], now, window)
                if not self._hits[key]:
                    del self._hits[key]
