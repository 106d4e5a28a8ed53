"""Result types for railway-oriented error handling.

Backing stores report infrastructure failures (connection loss, timeouts,
exhausted CAS retries) as data instead of raising, so the engine can turn
every runtime condition into a Decision without try/except on the hot path.

Usage:
    result = await store.execute_atomic(key, transform, ttl_seconds=10.0, timeout_seconds=0.005)
    match result:
        case Success(value=decision):
            return decision
        case Failure(error=err):
            return await fallback.check(key, rule, cost, now=now)
"""

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type


@dataclass(frozen=True, slots=True, kw_only=True)
class Success(Generic[T]):
    """Operation completed; carries its value."""

    value: T


@dataclass(frozen=True, slots=True, kw_only=True)
class Failure(Generic[E]):
    """Operation failed; carries the error describing why."""

    error: E


Result: TypeAlias = Success[T] | Failure[E]
