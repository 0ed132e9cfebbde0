"""
In-memory rate limiting

- RateLimiter: sliding window per identifier (OTP issuance per phone number)
- TokenBucket: fixed outbound capacity (WhatsApp sends)

Both are per-process. With several API instances the effective limit is
multiplied by the instance count.
"""
import time
import threading
from typing import Callable, Dict, List, Tuple
from collections import defaultdict


class RateLimiter:
    """
    Sliding window rate limiter.

    is_allowed() records the attempt when it is allowed, so callers check
    and consume in one step.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        # {identifier: [timestamp, ...]}
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._clock = clock
        self._lock = threading.Lock()
        self._last_cleanup = clock()
        self._cleanup_interval = 60  # seconds

    def _cleanup_old_entries(self, now: float, window_seconds: int) -> None:
        """Remove entries older than the window; runs at most once per interval"""
        if now - self._last_cleanup < self._cleanup_interval:
            return

        cutoff = now - window_seconds
        for identifier in list(self._requests.keys()):
            self._requests[identifier] = [ts for ts in self._requests[identifier] if ts > cutoff]
            if not self._requests[identifier]:
                del self._requests[identifier]

        self._last_cleanup = now

    def is_allowed(
        self,
        identifier: str,
        max_requests: int,
        window_seconds: int = 60
    ) -> Tuple[bool, int, int]:
        """
        Check if a request is allowed under the rate limit.

        Returns:
            Tuple of (is_allowed, remaining_requests, retry_after_seconds)
        """
        with self._lock:
            now = self._clock()
            self._cleanup_old_entries(now, window_seconds)

            window_start = now - window_seconds
            in_window = [ts for ts in self._requests[identifier] if ts > window_start]
            self._requests[identifier] = in_window

            if len(in_window) >= max_requests:
                oldest_timestamp = min(in_window)
                retry_after = int(oldest_timestamp + window_seconds - now) + 1
                return False, 0, retry_after

            in_window.append(now)
            return True, max_requests - len(in_window), 0

    def release(self, identifier: str) -> None:
        """Drop the most recent recorded attempt for an identifier"""
        with self._lock:
            attempts = self._requests.get(identifier)
            if attempts:
                attempts.pop()

    def reset(self, identifier: str) -> None:
        with self._lock:
            self._requests.pop(identifier, None)


class TokenBucket:
    """
    Token bucket: `rate` tokens per second, at most `capacity` banked.

    acquire() blocks until a token is available or `timeout` elapses.
    """

    def __init__(
        self,
        rate: float,
        capacity: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if rate <= 0 or capacity < 1:
            raise ValueError("rate must be > 0 and capacity >= 1")
        self.rate = rate
        self.capacity = capacity
        self._tokens = float(capacity)
        self._clock = clock
        self._sleep = sleep
        self._updated = clock()
        self._lock = threading.Lock()

    def _refill(self, now: float) -> None:
        elapsed = now - self._updated
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._updated = now

    def try_acquire(self) -> bool:
        with self._lock:
            self._refill(self._clock())
            if self._tokens >= 1:
                self._tokens -= 1
                return True
            return False

    def acquire(self, timeout: float = 30.0) -> bool:
        """Wait for a token; returns False if none became available in time"""
        deadline = self._clock() + timeout
        while True:
            with self._lock:
                now = self._clock()
                self._refill(now)
                if self._tokens >= 1:
                    self._tokens -= 1
                    return True
                wait = (1 - self._tokens) / self.rate
            if now + wait > deadline:
                return False
            self._sleep(wait)
