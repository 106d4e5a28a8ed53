"""In-process backing store with versioned compare-and-swap.

Reference implementation of BackingStoreProtocol. Each key holds an encoded
state, a version and an expiry instant. execute_atomic reads (state,
version), runs the transform outside the lock, then commits only if the
version is still the one it read, retrying through RetryPolicy otherwise.
The lock is a plain threading.Lock held only for the dict operations, so
it is safe to share one store between event loops on different threads.

Test hooks:
    clock: Replaces time.time for TTL expiry.
    latency: Returns a delay in seconds awaited between read, compute and
        write, widening the race window the way a network round trip does.
    simulate_outage()/restore(): Make every call fail with STORE_UNAVAILABLE.

Every write also sweeps keys whose TTL has passed, so idle clients are
reclaimed without being touched again.

Usage:
    store = InMemoryStore(retry_policy=RetryPolicy(max_attempts=10))
    result = await store.execute_atomic(
        "ratelimit:token_bucket:user-1:api",
        transform,
        ttl_seconds=2.0,
        timeout_seconds=0.005,
    )
"""

import asyncio
import heapq
import itertools
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import TypeVar

from ratekeeper.core.enums import ErrorCode
from ratekeeper.core.result import Failure, Result, Success
from ratekeeper.domain.errors import StateDecodeError, StoreError
from ratekeeper.domain.protocols import StateTransform
from ratekeeper.infrastructure.store.retry import RetryPolicy, WriteConflict, run_with_retry

T = TypeVar("T")

# Version reported for an absent or expired key.
_ABSENT = 0


@dataclass(slots=True)
class _Entry:
    value: str
    version: int
    expires_at: float


class InMemoryStore:
    """Dictionary-backed implementation of BackingStoreProtocol.

    Note: Does NOT inherit from BackingStoreProtocol (uses structural typing).
    """

    def __init__(
        self,
        *,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], float] = time.time,
        latency: Callable[[], float] | None = None,
    ) -> None:
        self._entries: dict[str, _Entry] = {}
        self._expiries: list[tuple[float, str]] = []
        self._lock = threading.Lock()
        self._versions = itertools.count(1)
        self._retry_policy = retry_policy or RetryPolicy()
        self._clock = clock
        self._latency = latency
        self._available = True

    def simulate_outage(self) -> None:
        """Fail every subsequent call with STORE_UNAVAILABLE."""
        self._available = False

    def restore(self) -> None:
        """End a simulated outage."""
        self._available = True

    def key_count(self) -> int:
        """Number of keys currently held, expired ones not yet swept included."""
        with self._lock:
            return len(self._entries)

    async def execute_atomic(
        self,
        key: str,
        transform: StateTransform[T],
        *,
        ttl_seconds: float,
        timeout_seconds: float,
    ) -> Result[T, StoreError]:
        if not self._available:
            return Failure(error=self._unavailable(key))
        try:
            async with asyncio.timeout(timeout_seconds):
                return await run_with_retry(
                    partial(self._attempt, key, transform, ttl_seconds),
                    self._retry_policy,
                    key=key,
                )
        except TimeoutError:
            return Failure(error=_timed_out(key, timeout_seconds))
        except StateDecodeError as e:
            return Failure(error=_corrupted(key, e))

    async def read(
        self,
        key: str,
        *,
        timeout_seconds: float,
    ) -> Result[str | None, StoreError]:
        if not self._available:
            return Failure(error=self._unavailable(key))
        value, _ = self._snapshot(key)
        return Success(value=value)

    async def exists(
        self,
        key: str,
        *,
        timeout_seconds: float = 1.0,
    ) -> Result[bool, StoreError]:
        if not self._available:
            return Failure(error=self._unavailable(key))
        value, _ = self._snapshot(key)
        return Success(value=value is not None)

    async def _attempt(
        self,
        key: str,
        transform: StateTransform[T],
        ttl_seconds: float,
    ) -> T:
        raw, version = self._snapshot(key)
        await self._pause()
        new_raw, outcome = transform(raw)
        await self._pause()
        if not self._compare_and_set(key, version, new_raw, ttl_seconds):
            raise WriteConflict(key)
        return outcome

    def _snapshot(self, key: str) -> tuple[str | None, int]:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None, _ABSENT
            return entry.value, entry.version

    def _compare_and_set(
        self,
        key: str,
        expected_version: int,
        value: str,
        ttl_seconds: float,
    ) -> bool:
        with self._lock:
            entry = self._live_entry(key)
            current = entry.version if entry is not None else _ABSENT
            if current != expected_version:
                return False
            now = self._clock()
            expires_at = now + ttl_seconds
            self._entries[key] = _Entry(
                value=value,
                version=next(self._versions),
                expires_at=expires_at,
            )
            heapq.heappush(self._expiries, (expires_at, key))
            self._evict_expired(now)
            return True

    def _live_entry(self, key: str) -> _Entry | None:
        """Return the entry if unexpired, evicting it otherwise. Lock held."""
        entry = self._entries.get(key)
        if entry is not None and self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def _evict_expired(self, now: float) -> None:
        """Drop every key whose TTL has passed, idle or not. Lock held.

        Rewritten keys leave stale heap items behind; an item only evicts
        when it still matches the entry's current expiry.
        """
        while self._expiries and self._expiries[0][0] <= now:
            expires_at, key = heapq.heappop(self._expiries)
            entry = self._entries.get(key)
            if entry is not None and entry.expires_at == expires_at:
                del self._entries[key]

    async def _pause(self) -> None:
        if self._latency is not None:
            await asyncio.sleep(self._latency())

    @staticmethod
    def _unavailable(key: str) -> StoreError:
        return StoreError(
            code=ErrorCode.STORE_UNAVAILABLE,
            message="In-memory store is unavailable (simulated outage)",
            details={"key": key},
        )


def _timed_out(key: str, timeout_seconds: float) -> StoreError:
    return StoreError(
        code=ErrorCode.STORE_TIMEOUT,
        message=f"Store call for '{key}' exceeded {timeout_seconds:.3f}s",
        details={"key": key, "timeout_seconds": timeout_seconds},
    )


def _corrupted(key: str, exc: StateDecodeError) -> StoreError:
    return StoreError(
        code=ErrorCode.STATE_CORRUPTED,
        message=f"Stored state for '{key}' could not be decoded",
        details={"key": key, "error": str(exc)},
    )
