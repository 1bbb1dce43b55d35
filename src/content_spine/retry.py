"""Retry strategies with configurable backoff.

Only the per-item catalog patch retries; the bulk catalog replace and the
content source never do.

Example:
    >>> from content_spine.retry import QuadraticBackoff, RetryContext
    >>>
    >>> strategy = QuadraticBackoff(max_attempts=3, base_delay=0.3)
    >>> [strategy.next_delay(attempt) for attempt in (1, 2)]
    [0.3, 1.2]
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, TypeVar, Any

from content_spine.errors import is_retryable

T = TypeVar("T")


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Delay in seconds after the given (1-based) failed attempt."""
        ...

    @abstractmethod
    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        """Whether another attempt may follow the given (1-based) failed attempt."""
        ...


@dataclass
class QuadraticBackoff(RetryStrategy):
    """
    Delay = base_delay * attempt ** 2  (0.3s, 1.2s, 2.7s, ...)

    Attributes:
        max_attempts: Total attempts including the first call
        base_delay: Delay after the first failure, in seconds
        retry_if: Predicate deciding which errors are retryable
    """

    max_attempts: int = 3
    base_delay: float = 0.3
    retry_if: Callable[[Exception], bool] = is_retryable

    def next_delay(self, attempt: int) -> float:
        return self.base_delay * attempt * attempt

    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        if attempt >= self.max_attempts:
            return False
        if error is not None:
            return self.retry_if(error)
        return True


@dataclass
class RetryContext:
    """
    Runs a callable under a retry strategy and records what happened.

    Example:
        >>> ctx = RetryContext(QuadraticBackoff())
        >>> result = ctx.run(lambda: call_api())
        >>> ctx.attempts, ctx.delays
    """

    strategy: RetryStrategy
    on_retry: Callable[[int, Exception, float], None] | None = None
    sleep: Callable[[float], None] = time.sleep
    attempt: int = field(default=0, init=False)
    last_error: Exception | None = field(default=None, init=False)
    delays: list[float] = field(default_factory=list, init=False)

    @property
    def attempts(self) -> int:
        """Number of attempts made."""
        return self.attempt

    def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Execute func, retrying while the strategy allows.

        Raises:
            The last exception once retries are exhausted or the error is not retryable.
        """
        while True:
            self.attempt += 1
            try:
                return func(*args, **kwargs)
            except Exception as e:
                self.last_error = e

                if not self.strategy.should_retry(self.attempt, e):
                    raise

                delay = self.strategy.next_delay(self.attempt)
                self.delays.append(delay)

                if self.on_retry:
                    self.on_retry(self.attempt, e, delay)

                self.sleep(delay)
