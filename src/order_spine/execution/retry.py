"""Retry strategies with bounded attempts.

A strategy decides whether a failed attempt may be retried and how long
to pause first.  Only errors that declare themselves ``retryable`` are
retried; everything else short-circuits without consuming budget.

Example:
    >>> strategy = ConstantBackoff(max_retries=3, delay=0.0)
    >>> ctx = RetryContext(strategy)
    >>> result = ctx.run(lambda: call_store())
    >>> ctx.attempts
    1
"""

import random
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

T = TypeVar("T")


def is_retryable(error: BaseException) -> bool:
    """True when the error declares itself retryable."""
    return bool(getattr(error, "retryable", False))


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    max_retries: int

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Calculate delay before next retry attempt.

        Args:
            attempt: Zero-based retry number (0 = first retry)

        Returns:
            Delay in seconds before next attempt
        """
        ...

    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        """Determine if another retry should be attempted.

        Args:
            attempt: Retries already performed
            error: The exception that caused the failure
        """
        if attempt >= self.max_retries:
            return False
        if error is not None:
            return is_retryable(error)
        return True


@dataclass
class ConstantBackoff(RetryStrategy):
    """Constant delay between retries."""

    max_retries: int = 3
    delay: float = 0.0

    def next_delay(self, attempt: int) -> float:
        return self.delay


@dataclass
class ExponentialBackoff(RetryStrategy):
    """Exponential backoff with optional jitter.

    Delay = min(base_delay * (multiplier ** attempt), max_delay) + jitter
    """

    max_retries: int = 3
    base_delay: float = 0.1
    max_delay: float = 30.0
    multiplier: float = 2.0
    jitter: bool = True
    jitter_range: float = 0.25

    def next_delay(self, attempt: int) -> float:
        delay = min(
            self.base_delay * (self.multiplier ** attempt),
            self.max_delay,
        )

        if self.jitter:
            jitter_amount = delay * self.jitter_range
            delay += random.uniform(-jitter_amount, jitter_amount)
            delay = max(0, delay)

        return delay


@dataclass
class RetryContext:
    """Tracks one retried invocation.

    Attributes:
        strategy: Retry strategy deciding budget and delays
        on_retry: Callback invoked before each retry (attempt, error, delay)
        sleep: Pause function, swapped out in tests
    """

    strategy: RetryStrategy
    on_retry: Callable[[int, BaseException, float], None] | None = None
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)
    attempt: int = field(default=0, init=False)
    last_error: BaseException | None = field(default=None, init=False)
    errors: list[tuple[int, BaseException]] = field(default_factory=list, init=False)

    @property
    def attempts(self) -> int:
        """Number of attempts made."""
        return self.attempt

    def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Execute function with retry logic.

        Returns:
            Result from the first successful attempt

        Raises:
            The last exception once it is not retryable or budget is spent
        """
        while True:
            self.attempt += 1
            try:
                return func(*args, **kwargs)
            except Exception as e:
                self.last_error = e
                self.errors.append((self.attempt, e))

                retries_done = self.attempt - 1
                if not self.strategy.should_retry(retries_done, e):
                    raise

                delay = self.strategy.next_delay(retries_done)

                if self.on_retry:
                    self.on_retry(self.attempt, e, delay)

                if delay > 0:
                    self.sleep(delay)
