"""Shared token bucket limiter for outbound fetches to busy hosts."""

import logging
import threading
import time
from collections.abc import Callable, Iterable
from typing import Protocol
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    def acquire(self, cancel: threading.Event | None = None) -> bool:
        """Block until a token is available.

        Returns False without a token if ``cancel`` fires while waiting.
        """


class TokenBucketLimiter:
    """Thread-safe token bucket allowing ``rate`` tokens per second.

    Tokens are reserved up front: a caller takes a token even when the bucket
    is empty, which pushes the balance negative, and then sleeps until its
    reservation matures. A cancelled waiter gives its token back.
    """

    def __init__(
        self,
        rate: float,
        burst: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the limiter.

        Args:
            rate: Steady state tokens per second
            burst: Maximum number of tokens that can accumulate
            clock: Monotonic time source in seconds
        """
        if rate <= 0:
            raise ValueError("rate must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")

        self.rate = rate
        self.burst = burst
        self._clock = clock
        self._lock = threading.Lock()
        self._tokens = float(burst)
        self._last = clock()

    def _advance(self, now: float) -> None:
        elapsed = max(0.0, now - self._last)
        self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
        self._last = now

    def reserve(self) -> float:
        """Take one token and return how long the caller must wait for it."""
        with self._lock:
            self._advance(self._clock())
            self._tokens -= 1
            if self._tokens >= 0:
                return 0.0
            return -self._tokens / self.rate

    def cancel_reservation(self) -> None:
        with self._lock:
            self._advance(self._clock())
            self._tokens = min(float(self.burst), self._tokens + 1)

    def acquire(self, cancel: threading.Event | None = None) -> bool:
        if cancel is not None and cancel.is_set():
            return False

        delay = self.reserve()
        if delay <= 0:
            return True

        logger.debug(f"Rate limited, waiting {delay:.3f}s for a token")
        if cancel is None:
            time.sleep(delay)
            return True
        if cancel.wait(delay):
            self.cancel_reservation()
            return False
        return True


class UnlimitedLimiter:
    """Limiter that never blocks."""

    def acquire(self, cancel: threading.Event | None = None) -> bool:
        return True


def is_rate_limited(url: str, hosts: Iterable[str]) -> bool:
    """Check whether ``url`` points at one of the rate limited hosts.

    Only https origins are matched, e.g. ``https://github.com/...``.
    """
    parsed = urlparse(url)
    if parsed.scheme != "https" or not parsed.hostname:
        return False
    return parsed.hostname.lower() in {host.lower() for host in hosts}
