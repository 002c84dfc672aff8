# storefront/core/rate_limit.py
import time
from dataclasses import dataclass
from typing import Callable, Dict


def monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class RateLimitBucket:
    count: int
    window_start: float


class RateLimiter:
    """Per-identifier fixed window counter.

    State lives in this process only, so limits are best-effort when the
    service runs as several instances. Expired buckets are pruned on every
    check.
    """

    def __init__(self, clock: Callable[[], float] = monotonic_ms):
        self._clock = clock
        self._buckets: Dict[str, RateLimitBucket] = {}

    def __len__(self):
        return len(self._buckets)

    def prune(self, window_ms: int) -> None:
        now = self._clock()
        expired = [key for key, bucket in self._buckets.items() if now - bucket.window_start >= window_ms]
        for key in expired:
            del self._buckets[key]

    def hit(self, identifier: str, max_requests: int = 100, window_ms: int = 15 * 60 * 1000) -> bool:
        """Count one request for ``identifier``; False once the limit is spent."""
        self.prune(window_ms)
        now = self._clock()

        bucket = self._buckets.get(identifier)
        if bucket is None:
            self._buckets[identifier] = RateLimitBucket(count=1, window_start=now)
            return True

        if bucket.count >= max_requests:
            return False

        bucket.count += 1
        return True

    def reset(self) -> None:
        self._buckets.clear()
