"""Rate limiter engine.

Evaluates one rule for one key against the shared backing store:

    1. Validate cost (ConfigurationError on caller bugs, before any I/O)
    2. Deny outright if cost can never fit the rule's limit
    3. Bind the rule's algorithm into a pure StateTransform
    4. Run it through exactly one BackingStore.execute_atomic call
    5. On any store failure, hand the request to the FallbackLimiter

Runtime conditions never raise. A check either returns the store-backed
Decision or a degraded one; only invalid input raises ConfigurationError.

Quota is charged at check time. A caller that is cancelled after the store
committed is not refunded.

Usage:
    engine = RateLimiterEngine(store=store, fallback=FallbackLimiter(), logger=logger)
    decision = await engine.check(
        RateLimitKey(client_identifier="client-42", scope="search"),
        RateLimitRule(limit=10, window_seconds=1.0),
    )
"""

from __future__ import annotations

import math
import time
from typing import TYPE_CHECKING

from ratekeeper.algorithms import get_strategy
from ratekeeper.core.enums import ErrorCode
from ratekeeper.core.result import Failure, Success
from ratekeeper.domain.enums import DecisionReason
from ratekeeper.domain.errors import ConfigurationError, StateDecodeError, StoreError
from ratekeeper.domain.value_objects import Decision, RateLimitKey, RateLimitRule

if TYPE_CHECKING:
    from ratekeeper.application.fallback_limiter import FallbackLimiter
    from ratekeeper.domain.protocols import BackingStoreProtocol, LoggerProtocol


def validate_cost(cost: int) -> int:
    """Reject costs that are not integers >= 1.

    Raises:
        ConfigurationError: If cost is invalid.
    """
    if not isinstance(cost, int) or isinstance(cost, bool) or cost < 1:
        raise ConfigurationError(
            f"cost must be an integer >= 1, got {cost!r}",
            code=ErrorCode.INVALID_COST,
            field="cost",
        )
    return cost


def resolve_cost(rule: RateLimitRule, cost: int | None) -> int:
    """Return the cost units a request consumes (rule default when None)."""
    if cost is None:
        return rule.cost_per_request
    return validate_cost(cost)


class RateLimiterEngine:
    """Store-backed admission checks for a single rule and key.

    Implements RateLimiterProtocol (request_id is accepted and ignored;
    shard selection happens in ShardRouter).

    Args:
        store: Shared backing store.
        fallback: Degraded-mode limiter used when the store fails.
        logger: Structured logger.
        timeout_seconds: Upper bound for one store call.
        ttl_multiplier: Key TTL as a multiple of the rule window.
    """

    def __init__(
        self,
        *,
        store: BackingStoreProtocol,
        fallback: FallbackLimiter,
        logger: LoggerProtocol,
        timeout_seconds: float = 0.005,
        ttl_multiplier: float = 2.0,
    ) -> None:
        self._store = store
        self._fallback = fallback
        self._logger = logger
        self._timeout_seconds = timeout_seconds
        self._ttl_multiplier = ttl_multiplier
        self._degraded = False

    @property
    def is_degraded(self) -> bool:
        """True while the most recent store call failed."""
        return self._degraded

    async def check(
        self,
        key: RateLimitKey,
        rule: RateLimitRule,
        cost: int | None = None,
        *,
        now: float | None = None,
        request_id: str | None = None,
    ) -> Decision:
        """Check and consume quota.

        Args:
            key: Client + scope key.
            rule: Rule to enforce.
            cost: Cost units; None means rule.cost_per_request.
            now: Caller clock in epoch seconds; None means time.time().
            request_id: Ignored.

        Returns:
            Decision: Store-backed, or degraded when the store failed.

        Raises:
            ConfigurationError: If cost < 1.
        """
        units = resolve_cost(rule, cost)
        if units > rule.limit:
            return self._cost_exceeds_limit(key, rule, units)

        now = time.time() if now is None else now
        storage_key = key.storage_key(rule.algorithm)
        strategy = get_strategy(rule.algorithm)

        result = await self._store.execute_atomic(
            storage_key,
            strategy.transform(rule, units, now),
            ttl_seconds=rule.ttl_seconds(self._ttl_multiplier),
            timeout_seconds=self._timeout_seconds,
        )

        match result:
            case Success(value=decision):
                self._mark_healthy(storage_key)
                self._logger.debug(
                    "Rate limit checked",
                    key=storage_key,
                    rule=rule.label,
                    cost=units,
                    allowed=decision.allowed,
                    remaining=decision.remaining,
                )
                return decision
            case Failure(error=err):
                self._mark_degraded(storage_key, rule, err)
                return await self._fallback.check(key, rule, units, now=now)

    async def peek(
        self,
        key: RateLimitKey,
        rule: RateLimitRule,
        cost: int | None = None,
        *,
        now: float | None = None,
        request_id: str | None = None,
    ) -> Decision:
        """Evaluate a check against current state without consuming quota.

        Store failures degrade exactly like check().

        Raises:
            ConfigurationError: If cost < 1.
        """
        units = resolve_cost(rule, cost)
        if units > rule.limit:
            return self._cost_exceeds_limit(key, rule, units)

        now = time.time() if now is None else now
        storage_key = key.storage_key(rule.algorithm)
        result = await self._store.read(storage_key, timeout_seconds=self._timeout_seconds)

        match result:
            case Success(value=raw):
                try:
                    decision = get_strategy(rule.algorithm).preview(raw, rule, units, now)
                except StateDecodeError as e:
                    self._mark_degraded(
                        storage_key,
                        rule,
                        StoreError(
                            code=ErrorCode.STATE_CORRUPTED,
                            message=f"Stored state for '{storage_key}' could not be decoded",
                            details={"key": storage_key, "error": str(e)},
                        ),
                    )
                    return await self._fallback.peek(key, rule, units, now=now)
                self._mark_healthy(storage_key)
                return decision
            case Failure(error=err):
                self._mark_degraded(storage_key, rule, err)
                return await self._fallback.peek(key, rule, units, now=now)

    def _cost_exceeds_limit(self, key: RateLimitKey, rule: RateLimitRule, units: int) -> Decision:
        self._logger.warning(
            "Request cost exceeds rule limit",
            client=key.client_identifier,
            scope=key.scope,
            rule=rule.label,
            cost=units,
            limit=rule.limit,
        )
        return Decision(
            allowed=False,
            remaining=0,
            retry_after_seconds=math.inf,
            limit=rule.limit,
            reason=DecisionReason.COST_EXCEEDS_LIMIT,
        )

    def _mark_healthy(self, storage_key: str) -> None:
        if self._degraded:
            self._degraded = False
            self._logger.info("Backing store recovered", key=storage_key)

    def _mark_degraded(self, storage_key: str, rule: RateLimitRule, err: StoreError) -> None:
        if err.code == ErrorCode.STATE_CORRUPTED:
            self._logger.error(
                "Stored rate limit state is corrupted",
                key=storage_key,
                error_code=err.code.value,
                error_message=err.message,
            )
        log = self._logger.debug if self._degraded else self._logger.warning
        self._degraded = True
        log(
            "Backing store call failed, using fallback policy",
            key=storage_key,
            rule=rule.label,
            error_code=err.code.value,
            fallback_policy=rule.fallback_policy.value,
        )
