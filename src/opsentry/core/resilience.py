"""Retry execution with exponential backoff.

Retries an async operation according to a RetryPolicy. Every failure is
classified first; the policy's ``should_retry`` predicate then decides
whether another attempt is made. Whatever happens, the error that leaves
the executor is a ClassifiedError.

Example:
    >>> executor = RetryExecutor()
    >>> policy = RetryPolicy(max_attempts=3, base_delay=0.5)
    >>> body = await executor.execute(lambda: client.get(url), policy)

Testing example:
    >>> sleep_times = []
    >>> async def fake_sleep(s): sleep_times.append(s)
    >>> executor = RetryExecutor(sleep_func=fake_sleep)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, Protocol, TypeVar

from opsentry.core.errors import ClassifiedError, ErrorClassifier, ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_network_only(error: ClassifiedError) -> bool:
    """Default retry predicate: only NetworkFailure is retried."""
    return error.kind == ErrorKind.NETWORK


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration, immutable once created.

    Attributes:
        max_attempts: Total attempts including the first (>= 1)
        base_delay: Wait in seconds after the first failed attempt (>= 0)
        backoff_multiplier: Growth factor per attempt (>= 1)
        should_retry: Predicate over the classified error
        max_delay: Optional cap on any single wait
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    backoff_multiplier: float = 2.0
    should_retry: Callable[[ClassifiedError], bool] = retry_network_only
    max_delay: Optional[float] = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")
        if self.backoff_multiplier < 1:
            raise ValueError(f"backoff_multiplier must be >= 1, got {self.backoff_multiplier}")
        if self.max_delay is not None and self.max_delay < 0:
            raise ValueError(f"max_delay must be >= 0, got {self.max_delay}")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed ``attempt`` (1-based) before the next one."""
        delay = self.base_delay * (self.backoff_multiplier ** (attempt - 1))
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay


DEFAULT_RETRY_POLICY = RetryPolicy()


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Successful result of a retried operation.

    Attributes:
        value: The operation's return value
        attempts: Attempts made, including the successful one
        waited: Total seconds spent in backoff waits
    """

    value: T
    attempts: int
    waited: float = 0.0


class SleepFunc(Protocol):
    """Protocol for injectable sleep function."""

    async def __call__(self, seconds: float) -> None: ...


class RetryExecutor:
    """Execute async operations under a RetryPolicy."""

    def __init__(
        self,
        classifier: Optional[ErrorClassifier] = None,
        sleep_func: Optional[SleepFunc] = None,
    ):
        """
        Args:
            classifier: Classifier for raw failures. Defaults to ErrorClassifier().
            sleep_func: Injectable sleep for time control in tests.
        """
        self._classifier = classifier or ErrorClassifier()
        self._sleep = sleep_func or asyncio.sleep

    @property
    def classifier(self) -> ErrorClassifier:
        return self._classifier

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: Optional[RetryPolicy] = None,
    ) -> T:
        """Run ``operation`` and return its value.

        Raises:
            ClassifiedError: When retry is declined or attempts are exhausted.
        """
        outcome = await self.execute_detailed(operation, policy)
        return outcome.value

    async def execute_detailed(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: Optional[RetryPolicy] = None,
    ) -> RetryOutcome[T]:
        """Run ``operation`` and return the value with attempt statistics.

        The terminal ClassifiedError has its ``attempts`` attribute set.
        ``asyncio.CancelledError`` is never caught.
        """
        policy = policy or DEFAULT_RETRY_POLICY
        waited = 0.0
        attempt = 1

        while True:
            try:
                value = await operation()
                return RetryOutcome(value=value, attempts=attempt, waited=waited)
            except Exception as e:
                error = self._classifier.classify(e)
                error.attempts = attempt

                if attempt >= policy.max_attempts or not self._should_retry(policy, error):
                    if error is e:
                        raise
                    raise error from e

                delay = policy.delay_for(attempt)
                logger.warning(
                    "Retrying after %s (attempt %d/%d, waiting %.3fs)",
                    error.code,
                    attempt,
                    policy.max_attempts,
                    delay,
                )
                await self._sleep(delay)
                waited += delay
                attempt += 1

    @staticmethod
    def _should_retry(policy: RetryPolicy, error: ClassifiedError) -> bool:
        try:
            return bool(policy.should_retry(error))
        except Exception:
            logger.exception("Retry predicate failed for %s; not retrying", error.code)
            return False
