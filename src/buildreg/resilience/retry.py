"""Retry logic with fixed or exponential backoff for async operations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import wraps
from typing import ParamSpec, TypeVar

from buildreg.core.types import BackoffStrategy

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class RetryPolicy:
    """
    Configuration for retry behavior.

    ``max_attempts`` counts every call, so ``max_attempts=1`` disables retrying.
    Only idempotent reads should be wrapped.
    """

    max_attempts: int = 4
    base_delay: float = 1.0
    backoff: BackoffStrategy = BackoffStrategy.FIXED
    max_delay: float = 30.0
    retry_on: tuple[type[Exception], ...] = field(default=(Exception,))

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def get_delay(self, attempt: int) -> float:
        """
        Delay in seconds after the given failed attempt (0-indexed).

        Fixed backoff always waits ``base_delay``; exponential backoff waits
        ``base_delay * 2**attempt``. Both are capped at ``max_delay``.
        """
        if self.backoff == BackoffStrategy.EXPONENTIAL:
            delay = self.base_delay * (2**attempt)
        else:
            delay = self.base_delay
        return min(delay, self.max_delay)

    def should_retry(self, error: Exception) -> bool:
        """Whether a failure of this kind is worth another attempt."""
        if not isinstance(error, self.retry_on):
            return False
        return getattr(error, "retryable", True)


NO_RETRY = RetryPolicy(max_attempts=1, base_delay=0.0)


async def retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    sleep: Sleep = asyncio.sleep,
    description: str | None = None,
) -> T:
    """
    Run ``operation`` until it succeeds or the policy is exhausted.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt.
        policy: Retry configuration. Uses the default policy if None.
        sleep: Awaitable used for the delay between attempts.
        description: Label used in log messages.

    Returns:
        The first successful result. No delay is charged on success.

    Raises:
        Exception: The last error once every attempt failed, or the first
            error the policy does not consider retryable.
    """
    policy = policy or RetryPolicy()
    label = description or getattr(operation, "__name__", "operation")
    last_exception: Exception | None = None

    for attempt in range(policy.max_attempts):
        try:
            return await operation()
        except Exception as e:
            if not policy.should_retry(e):
                raise
            last_exception = e

            # Don't wait after the final attempt
            if attempt == policy.max_attempts - 1:
                break

            delay = policy.get_delay(attempt)
            logger.debug(
                f"{label} failed (attempt {attempt + 1}/{policy.max_attempts}), retrying in {delay:.2f}s: {e}"
            )
            await sleep(delay)

    logger.debug(f"{label} failed after {policy.max_attempts} attempts")
    raise last_exception  # type: ignore[misc]


def with_retry(
    policy: RetryPolicy | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Decorator adding retry logic to an async function.

    Usage:
        @with_retry(RetryPolicy(max_attempts=3, base_delay=0.5))
        async def fetch_partners() -> list[PartnerAttestation]:
            ...
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await retry(
                lambda: func(*args, **kwargs),
                policy,
                description=func.__qualname__,
            )

        return wrapper

    return decorator
