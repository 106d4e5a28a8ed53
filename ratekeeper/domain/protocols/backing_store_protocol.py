"""Backing store protocol (port) for atomic read-modify-write.

The engine never reads and writes state in separate calls. It hands the
store a pure transform and the store guarantees that read, compute and
write are one indivisible unit with respect to every other call on the
same key. Two implementation strategies satisfy this:

    1. Server-side scripting/transaction inside the store.
    2. Optimistic compare-and-swap: read with a version, compute locally,
       write only if the version is unchanged; retry a bounded number of
       times with jittered backoff, then report CONTENTION_EXCEEDED.

Implementations:
    - InMemoryStore: versioned CAS loop (reference, tests, single node)
    - RedisStore: WATCH/MULTI/EXEC CAS loop

Error Handling:
    Methods return Result types and never raise. Connection loss and
    timeouts are Failure(StoreError(STORE_UNAVAILABLE / STORE_TIMEOUT)).
"""

from collections.abc import Callable
from typing import Protocol, TypeAlias, TypeVar

from ratekeeper.core.result import Result
from ratekeeper.domain.errors import StoreError

T = TypeVar("T")

# (old encoded state or None if absent) -> (new encoded state, outcome)
StateTransform: TypeAlias = Callable[[str | None], tuple[str, T]]


class BackingStoreProtocol(Protocol):
    """Shared key-value store with per-key atomic read-modify-write."""

    async def execute_atomic(
        self,
        key: str,
        transform: StateTransform[T],
        *,
        ttl_seconds: float,
        timeout_seconds: float,
    ) -> Result[T, StoreError]:
        """Atomically apply a transform to one key's state.

        Args:
            key: Backing store key.
            transform: Pure function of the current encoded state (None when
                the key is absent or expired). May be called more than once
                under contention; only the committed call's outcome is
                returned.
            ttl_seconds: Lifetime (re)set on the key by the write.
            timeout_seconds: Upper bound for the whole call, retries
                included. A timeout is reported like a connection failure.

        Returns:
            Result[T, StoreError]: The committed transform's outcome.
        """
        ...

    async def read(
        self,
        key: str,
        *,
        timeout_seconds: float,
    ) -> Result[str | None, StoreError]:
        """Read the encoded state without modifying it or its TTL.

        Returns:
            Result[str | None, StoreError]: Encoded state, None if absent.
        """
        ...

    async def exists(
        self,
        key: str,
        *,
        timeout_seconds: float = 1.0,
    ) -> Result[bool, StoreError]:
        """Check whether a key currently holds (unexpired) state.

        Bounded by timeout_seconds like every other store call.
        """
        ...
