"""Redis backing store using WATCH/MULTI/EXEC compare-and-swap.

Each attempt WATCHes the key, reads it, runs the transform locally, then
writes the new state with a millisecond TTL inside MULTI/EXEC. If any other
client touched the key in between, EXEC aborts with WatchError and the
attempt is retried through RetryPolicy. Every write refreshes the TTL, so
keys of idle clients expire on their own and the engine never deletes.

Error mapping:
    WatchError (budget exhausted) -> CONTENTION_EXCEEDED
    RedisError (connection refused, reset, server timeout) -> STORE_UNAVAILABLE
    asyncio timeout around the whole call -> STORE_TIMEOUT
    Undecodable stored value -> STATE_CORRUPTED
"""

import asyncio
import math
from functools import partial
from typing import TypeVar

from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError

from ratekeeper.core.enums import ErrorCode
from ratekeeper.core.result import Failure, Result, Success
from ratekeeper.domain.errors import StateDecodeError, StoreError
from ratekeeper.domain.protocols import StateTransform
from ratekeeper.infrastructure.store.retry import RetryPolicy, WriteConflict, run_with_retry

T = TypeVar("T")


class RedisStore:
    """Redis implementation of BackingStoreProtocol.

    Note: Does NOT inherit from BackingStoreProtocol (uses structural typing).

    Attributes:
        _redis: Async Redis client instance.
        _retry_policy: CAS retry budget.
    """

    def __init__(self, redis_client: Redis, *, retry_policy: RetryPolicy | None = None) -> None:
        """Initialize Redis store.

        Args:
            redis_client: Async Redis client instance. Either decode_responses
                setting works.
            retry_policy: CAS retry budget. Defaults to RetryPolicy().
        """
        self._redis = redis_client
        self._retry_policy = retry_policy or RetryPolicy()

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
            key: Redis key.
            transform: Pure function of the current encoded state.
            ttl_seconds: Key lifetime set by the write (PX, rounded up).
            timeout_seconds: Upper bound for the whole call.

        Returns:
            Result with the committed outcome, or StoreError.
        """
        try:
            async with asyncio.timeout(timeout_seconds):
                return await run_with_retry(
                    partial(self._attempt, key, transform, ttl_seconds),
                    self._retry_policy,
                    key=key,
                )
        except TimeoutError:
            return Failure(
                error=StoreError(
                    code=ErrorCode.STORE_TIMEOUT,
                    message=f"Redis call for '{key}' exceeded {timeout_seconds:.3f}s",
                    details={"key": key, "timeout_seconds": timeout_seconds},
                )
            )
        except StateDecodeError as e:
            return Failure(
                error=StoreError(
                    code=ErrorCode.STATE_CORRUPTED,
                    message=f"Stored state for '{key}' could not be decoded",
                    details={"key": key, "error": str(e)},
                )
            )
        except RedisError as e:
            return Failure(error=_unavailable(key, e))

    async def read(
        self,
        key: str,
        *,
        timeout_seconds: float,
    ) -> Result[str | None, StoreError]:
        """Read the encoded state without touching it.

        Returns:
            Result with the value if found, None if not found, or StoreError.
        """
        try:
            async with asyncio.timeout(timeout_seconds):
                value = await self._redis.get(key)
            return Success(value=_decode(value))
        except TimeoutError:
            return Failure(
                error=StoreError(
                    code=ErrorCode.STORE_TIMEOUT,
                    message=f"Redis read of '{key}' exceeded {timeout_seconds:.3f}s",
                    details={"key": key, "timeout_seconds": timeout_seconds},
                )
            )
        except RedisError as e:
            return Failure(error=_unavailable(key, e))

    async def exists(
        self,
        key: str,
        *,
        timeout_seconds: float = 1.0,
    ) -> Result[bool, StoreError]:
        """Check if key exists in Redis."""
        try:
            async with asyncio.timeout(timeout_seconds):
                count = await self._redis.exists(key)
            return Success(value=count > 0)
        except TimeoutError:
            return Failure(
                error=StoreError(
                    code=ErrorCode.STORE_TIMEOUT,
                    message=f"Redis exists check of '{key}' exceeded {timeout_seconds:.3f}s",
                    details={"key": key, "timeout_seconds": timeout_seconds},
                )
            )
        except RedisError as e:
            return Failure(error=_unavailable(key, e))

    async def _attempt(
        self,
        key: str,
        transform: StateTransform[T],
        ttl_seconds: float,
    ) -> T:
        async with self._redis.pipeline(transaction=True) as pipe:
            await pipe.watch(key)
            raw = _decode(await pipe.get(key))
            new_raw, outcome = transform(raw)
            pipe.multi()
            pipe.set(key, new_raw, px=max(1, math.ceil(ttl_seconds * 1000)))
            try:
                await pipe.execute()
            except WatchError as e:
                raise WriteConflict(key) from e
        return outcome


def _decode(value: bytes | str | None) -> str | None:
    # Redis returns bytes unless the client was built with decode_responses
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def _unavailable(key: str, exc: Exception) -> StoreError:
    return StoreError(
        code=ErrorCode.STORE_UNAVAILABLE,
        message=f"Redis unavailable for '{key}'",
        details={"key": key, "error": str(exc), "type": type(exc).__name__},
    )
