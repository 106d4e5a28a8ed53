"""Bounded optimistic-concurrency retry with jittered exponential backoff.

Both backing stores commit with compare-and-swap: read a version, compute,
write only if the version is unchanged. A lost race raises WriteConflict
and the attempt is re-run from scratch (fresh read, fresh transform) after
a randomized pause, so colliding writers spread out instead of colliding
again in lockstep.

When the budget is spent the call fails with CONTENTION_EXCEEDED, which the
engine treats like an unavailable store.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from ratekeeper.core.enums import ErrorCode
from ratekeeper.core.result import Failure, Result, Success
from ratekeeper.domain.errors import StoreError

T = TypeVar("T")


class WriteConflict(Exception):
    """The key changed between read and write; the attempt must be re-run."""


@dataclass(frozen=True, slots=True, kw_only=True)
class RetryPolicy:
    """CAS retry budget.

    Attributes:
        max_attempts: Total attempts, first one included.
        base_delay: Backoff ceiling after the first conflict, in seconds.
        max_delay: Upper bound for any single backoff, in seconds.

    Example:
        >>> policy = RetryPolicy(max_attempts=5, base_delay=0.001, max_delay=0.02)
        >>> 0.0 <= policy.backoff(attempt=2) <= 0.004
        True
    """

    max_attempts: int = 5
    base_delay: float = 0.001
    max_delay: float = 0.02

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("backoff delays must not be negative")

    def backoff(self, attempt: int) -> float:
        """Full-jitter delay after the given (0-indexed) failed attempt.

        Uniform in [0, min(max_delay, base_delay * 2**attempt)].
        """
        ceiling = min(self.max_delay, self.base_delay * (2**attempt))
        return random.uniform(0.0, ceiling)


async def run_with_retry(
    attempt: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    key: str,
) -> Result[T, StoreError]:
    """Run a CAS attempt until it commits or the budget is spent.

    Args:
        attempt: One read-compute-write cycle. Raises WriteConflict if the
            write lost a race; other exceptions propagate.
        policy: Retry budget.
        key: Key being written, for error details.

    Returns:
        Result[T, StoreError]: Committed outcome, or CONTENTION_EXCEEDED.
    """
    for attempt_number in range(policy.max_attempts):
        try:
            return Success(value=await attempt())
        except WriteConflict:
            if attempt_number + 1 < policy.max_attempts:
                await asyncio.sleep(policy.backoff(attempt_number))

    return Failure(
        error=StoreError(
            code=ErrorCode.CONTENTION_EXCEEDED,
            message=f"Compare-and-swap on '{key}' lost {policy.max_attempts} races",
            details={"key": key, "attempts": policy.max_attempts},
        )
    )
