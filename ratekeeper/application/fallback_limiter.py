"""Degraded-mode limiter used while the backing store is unreachable.

State here is process-local and NOT shared across instances. With
LOCAL_APPROXIMATE, N instances each admit up to the full limit, so the
cluster-wide rate during an outage is at most N times the rule's limit.
Nothing recorded here is reconciled into the shared store on recovery.

Policies:
    FAIL_OPEN: Admit everything (availability over protection).
    FAIL_CLOSED: Reject everything with a short retry hint.
    LOCAL_APPROXIMATE: Per-process token bucket with the rule's limit and
        window, whatever algorithm the rule normally uses.
"""

from __future__ import annotations

import dataclasses

from ratekeeper.algorithms import TokenBucketStrategy
from ratekeeper.core.result import Failure, Success
from ratekeeper.domain.enums import DecisionReason, FallbackPolicy, RateLimitAlgorithm
from ratekeeper.domain.value_objects import Decision, RateLimitKey, RateLimitRule
from ratekeeper.infrastructure.store import InMemoryStore

# In-process calls never wait on I/O.
_LOCAL_TIMEOUT_SECONDS = 1.0


class FallbackLimiter:
    """Decides admission without the shared store.

    Args:
        degraded_retry_after_seconds: Retry hint returned by FAIL_CLOSED.
        local_store: Process-local store for LOCAL_APPROXIMATE buckets.
        ttl_multiplier: Lifetime of local buckets as a multiple of the window.
    """

    def __init__(
        self,
        *,
        degraded_retry_after_seconds: float = 1.0,
        local_store: InMemoryStore | None = None,
        ttl_multiplier: float = 2.0,
    ) -> None:
        self._retry_after = degraded_retry_after_seconds
        self._local_store = local_store or InMemoryStore()
        self._ttl_multiplier = ttl_multiplier
        self._strategy = TokenBucketStrategy()

    async def check(
        self,
        key: RateLimitKey,
        rule: RateLimitRule,
        cost: int,
        *,
        now: float,
    ) -> Decision:
        """Degraded decision for one rule, consuming local quota if any."""
        match rule.fallback_policy:
            case FallbackPolicy.FAIL_OPEN:
                return self._fail_open(rule)
            case FallbackPolicy.FAIL_CLOSED:
                return self._fail_closed(rule)
            case FallbackPolicy.LOCAL_APPROXIMATE:
                return await self._local_check(key, rule, cost, now)

    async def peek(
        self,
        key: RateLimitKey,
        rule: RateLimitRule,
        cost: int,
        *,
        now: float,
    ) -> Decision:
        """Degraded decision for one rule without consuming local quota."""
        match rule.fallback_policy:
            case FallbackPolicy.FAIL_OPEN:
                return self._fail_open(rule)
            case FallbackPolicy.FAIL_CLOSED:
                return self._fail_closed(rule)
            case FallbackPolicy.LOCAL_APPROXIMATE:
                local_rule = _as_local_bucket(rule)
                result = await self._local_store.read(
                    _local_key(key), timeout_seconds=_LOCAL_TIMEOUT_SECONDS
                )
                match result:
                    case Success(value=raw):
                        return _mark_local(self._strategy.preview(raw, local_rule, cost, now))
                    case Failure():
                        return self._fail_open(rule)

    async def _local_check(
        self,
        key: RateLimitKey,
        rule: RateLimitRule,
        cost: int,
        now: float,
    ) -> Decision:
        local_rule = _as_local_bucket(rule)
        result = await self._local_store.execute_atomic(
            _local_key(key),
            self._strategy.transform(local_rule, cost, now),
            ttl_seconds=local_rule.ttl_seconds(self._ttl_multiplier),
            timeout_seconds=_LOCAL_TIMEOUT_SECONDS,
        )
        match result:
            case Success(value=decision):
                return _mark_local(decision)
            case Failure():
                return self._fail_open(rule)

    @staticmethod
    def _fail_open(rule: RateLimitRule) -> Decision:
        return Decision(
            allowed=True,
            remaining=rule.limit,
            retry_after_seconds=0.0,
            limit=rule.limit,
            reason=DecisionReason.DEGRADED_FAIL_OPEN,
        )

    def _fail_closed(self, rule: RateLimitRule) -> Decision:
        return Decision(
            allowed=False,
            remaining=0,
            retry_after_seconds=self._retry_after,
            limit=rule.limit,
            reason=DecisionReason.DEGRADED_FAIL_CLOSED,
        )


def _as_local_bucket(rule: RateLimitRule) -> RateLimitRule:
    if rule.algorithm == RateLimitAlgorithm.TOKEN_BUCKET:
        return rule
    return dataclasses.replace(rule, algorithm=RateLimitAlgorithm.TOKEN_BUCKET)


def _local_key(key: RateLimitKey) -> str:
    return key.storage_key(RateLimitAlgorithm.TOKEN_BUCKET)


def _mark_local(decision: Decision) -> Decision:
    if decision.allowed:
        return dataclasses.replace(decision, reason=DecisionReason.DEGRADED_LOCAL)
    return decision
