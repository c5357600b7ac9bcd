"""
Geo Converter — Rate Limiting & Retry Policies
===============================================
Pluggable pacing for the batch processor.

Defaults reproduce the classic behaviour: a constant one-second pause
after every row and no retries.

Classes:
    RateLimiter         Abstract pause-between-requests policy.
    FixedDelay          Constant delay (default 1.0 s).
    TokenBucket         Burst-friendly limiter refilled at a fixed rate.
    RetryPolicy         Abstract schedule of waits before retries.
    NoRetry             Never retry (default).
    ExponentialBackoff  Retry transport failures with growing waits.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Callable, Iterator

from geo_converter.exceptions import InputValidationError

Sleep = Callable[[float], None]

DEFAULT_DELAY_SECONDS = 1.0


# ---------------------------------------------------------------------------
# Rate limiters
# ---------------------------------------------------------------------------


class RateLimiter(ABC):
    """Decides how long to pause after each row."""

    @abstractmethod
    def wait(self, sleep: Sleep = time.sleep) -> None:
        """Block until the next request may be issued.

        Args:
            sleep: Function used to pause; injected so tests do not block.
        """


class FixedDelay(RateLimiter):
    """Pause for the same number of seconds after every row.

    Not adaptive: the delay does not change after failures.

    Args:
        seconds: Delay in seconds.  ``0`` disables pacing.
    """

    def __init__(self, seconds: float = DEFAULT_DELAY_SECONDS) -> None:
        if seconds < 0:
            raise InputValidationError(f"Delay must be >= 0 seconds, got {seconds}")
        self.seconds = seconds

    def wait(self, sleep: Sleep = time.sleep) -> None:
        if self.seconds > 0:
            sleep(self.seconds)

    def __repr__(self) -> str:
        return f"FixedDelay(seconds={self.seconds!r})"


class TokenBucket(RateLimiter):
    """Token-bucket limiter.

    Allows short bursts of up to ``capacity`` requests, then settles at
    ``rate`` requests per second.  One token is consumed per row.

    Args:
        rate: Tokens added per second.
        capacity: Maximum number of stored tokens.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        rate: float,
        capacity: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if rate <= 0:
            raise InputValidationError(f"Token rate must be > 0, got {rate}")
        if capacity < 1:
            raise InputValidationError(f"Bucket capacity must be >= 1, got {capacity}")
        self.rate = rate
        self.capacity = capacity
        self._clock = clock
        # Starts empty: the request just issued has used the first token.
        self._tokens = float(capacity) - 1.0
        self._last = clock()

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(self.capacity, self._tokens + (now - self._last) * self.rate)
        self._last = now

    def wait(self, sleep: Sleep = time.sleep) -> None:
        self._refill()
        if self._tokens < 1.0:
            deficit = (1.0 - self._tokens) / self.rate
            sleep(deficit)
            self._refill()
            # The clock may be frozen in tests; account for the sleep anyway.
            self._tokens = max(self._tokens, 1.0)
        self._tokens -= 1.0


# ---------------------------------------------------------------------------
# Retry policies
# ---------------------------------------------------------------------------


class RetryPolicy(ABC):
    """Schedule of waits before each retry of a failed transport request.

    Only :class:`~geo_converter.exceptions.TransportError` is retried; a
    ``NotFoundError`` is a definitive answer and is never retried.
    """

    @abstractmethod
    def delays(self) -> Iterator[float]:
        """Yield the wait (seconds) before each successive retry."""


class NoRetry(RetryPolicy):
    """Never retry."""

    def delays(self) -> Iterator[float]:
        return iter(())

    def __repr__(self) -> str:
        return "NoRetry()"


class ExponentialBackoff(RetryPolicy):
    """Retry up to ``max_retries`` times, multiplying the wait by ``factor``.

    Args:
        max_retries: Number of retries after the first attempt.
        base_delay: Wait before the first retry, in seconds.
        factor: Multiplier applied after each retry.
        max_delay: Upper bound for any single wait.

    Example::

        >>> list(ExponentialBackoff(max_retries=3, base_delay=1.0).delays())
        [1.0, 2.0, 4.0]
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        factor: float = 2.0,
        max_delay: float = 30.0,
    ) -> None:
        if max_retries < 0:
            raise InputValidationError(f"max_retries must be >= 0, got {max_retries}")
        if base_delay < 0 or factor < 1:
            raise InputValidationError("base_delay must be >= 0 and factor >= 1")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.factor = factor
        self.max_delay = max_delay

    def delays(self) -> Iterator[float]:
        delay = self.base_delay
        for _ in range(self.max_retries):
            yield min(delay, self.max_delay)
            delay *= self.factor

    def __repr__(self) -> str:
        return (
            f"ExponentialBackoff(max_retries={self.max_retries}, "
            f"base_delay={self.base_delay}, factor={self.factor})"
        )
