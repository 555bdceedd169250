"""Instrumentation wrapper.

Composes the trace registry and the retry executor: every ``measure`` call
starts a trace, runs the operation under a retry policy, stops the trace
with outcome metrics and then returns the value or re-raises the
classified error. The trace is stopped before ``measure`` completes on
every exit path, cancellation and interpreter exits included.

Example:
    instrumentation = Instrumentation(registry)

    profile = await instrumentation.measure(
        "load_profile", lambda: client.get_profile(user_id)
    )

    @instrumentation.instrumented("sync_history")
    async def sync_history() -> int:
        ...
"""

import asyncio
import functools
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from opsentry.core.errors import ClassifiedError
from opsentry.core.observability.trace import TraceRegistry
from opsentry.core.resilience import DEFAULT_RETRY_POLICY, RetryExecutor, RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Instrumentation:
    """Measure async operations with tracing and retries."""

    def __init__(
        self,
        registry: TraceRegistry,
        executor: Optional[RetryExecutor] = None,
        default_policy: Optional[RetryPolicy] = None,
    ):
        self._registry = registry
        self._executor = executor or RetryExecutor()
        self._default_policy = default_policy or DEFAULT_RETRY_POLICY

    @property
    def registry(self) -> TraceRegistry:
        return self._registry

    @property
    def default_policy(self) -> RetryPolicy:
        return self._default_policy

    async def measure(
        self,
        name: str,
        operation: Callable[[], Awaitable[T]],
        retry_policy: Optional[RetryPolicy] = None,
    ) -> T:
        """Run ``operation`` under a trace named ``name``.

        Args:
            name: Trace name; metrics land in the store as ``{name}_{metric}``.
            operation: Zero-argument async callable.
            retry_policy: Overrides the default policy for this call.

        Returns:
            The operation's value.

        Raises:
            ClassifiedError: The terminal failure, after it has been recorded.
        """
        self._registry.start(name)

        try:
            outcome = await self._executor.execute_detailed(
                operation, retry_policy or self._default_policy
            )
        except ClassifiedError as error:
            logger.debug(
                "Measured operation %s failed with %s after %s attempt(s)",
                name,
                error.code,
                error.attempts,
            )
            self._registry.stop(
                name,
                {"success": 0.0, "attempts": error.attempts or 1},
                {"error_kind": error.kind.value, "error_code": error.code},
            )
            raise
        except asyncio.CancelledError:
            self._registry.stop(name, {"success": 0.0, "cancelled": 1.0})
            raise
        except BaseException as e:
            self._registry.stop(name, {"success": 0.0}, {"exception_type": type(e).__name__})
            raise

        self._registry.stop(name, {"success": 1.0, "attempts": outcome.attempts})
        return outcome.value

    def instrumented(
        self,
        name: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
        """Decorator that routes every call of an async function through ``measure``.

        Args:
            name: Trace name (defaults to the function's qualified name)
            retry_policy: Retry policy for every call
        """

        def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
            if not inspect.iscoroutinefunction(func):
                raise TypeError(f"instrumented() requires an async function, got {func!r}")
            trace_name = name or func.__qualname__

            @functools.wraps(func)
            async def wrapper(*args: Any, **kwargs: Any) -> T:
                return await self.measure(
                    trace_name,
                    lambda: func(*args, **kwargs),
                    retry_policy,
                )

            return wrapper

        return decorator
