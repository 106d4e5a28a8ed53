"""Multi-rule composition.

A client is usually governed by several rules at once (e.g. 10/second AND
1000/hour). The Composer evaluates them tightest window first and combines
the results into one Decision.

Modes:
    SHORT_CIRCUIT: Check rules in order and stop at the first denial.
        Quota already consumed by earlier rules stays consumed.
    ALL_OR_NOTHING: Peek every rule first and return the first would-be
        denial without consuming anything; only if all would admit, commit
        each. A concurrent caller can still win the race between peek and
        commit, in which case a later rule denies and earlier commits are
        not rolled back.

Each rule keeps its own state: the key scope is suffixed with the rule's
label, so two rules using the same algorithm never share a bucket.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING
from uuid import uuid4

from ratekeeper.application.engine import validate_cost
from ratekeeper.core.enums import ErrorCode
from ratekeeper.domain.enums import CompositionMode, DecisionReason
from ratekeeper.domain.errors import ConfigurationError
from ratekeeper.domain.value_objects import Decision, RateLimitKey, RateLimitRule

if TYPE_CHECKING:
    from ratekeeper.domain.protocols import (
        ConfigResolverProtocol,
        LoggerProtocol,
        RateLimiterProtocol,
    )


class Composer:
    """Combines several rules into one admission decision.

    Args:
        limiter: Single-rule limiter (ShardRouter or RateLimiterEngine).
        logger: Structured logger.
        resolver: Rule source used by admit().
        mode: How rules combine.
    """

    def __init__(
        self,
        *,
        limiter: RateLimiterProtocol,
        logger: LoggerProtocol,
        resolver: ConfigResolverProtocol | None = None,
        mode: CompositionMode = CompositionMode.SHORT_CIRCUIT,
    ) -> None:
        self._limiter = limiter
        self._logger = logger
        self._resolver = resolver
        self._mode = mode

    @property
    def mode(self) -> CompositionMode:
        return self._mode

    async def admit(
        self,
        client_tier: str,
        client_identifier: str,
        scope: str,
        cost: int | None = None,
        *,
        now: float | None = None,
        request_id: str | None = None,
    ) -> Decision:
        """Resolve the rules for a tier and scope, then check them.

        Raises:
            ConfigurationError: If no resolver is configured, the resolved
                rules are invalid, or cost < 1.
        """
        if self._resolver is None:
            raise ConfigurationError(
                "Composer has no rule resolver; pass rules to check() instead",
                code=ErrorCode.RULES_NOT_FOUND,
            )
        rules = self._resolver.resolve(client_tier, scope)
        return await self.check(
            client_identifier, scope, rules, cost, now=now, request_id=request_id
        )

    async def check(
        self,
        client_identifier: str,
        scope: str,
        rules: list[RateLimitRule],
        cost: int | None = None,
        *,
        now: float | None = None,
        request_id: str | None = None,
    ) -> Decision:
        """Check a request against every rule.

        Args:
            client_identifier: Caller identity.
            scope: Endpoint or operation being limited.
            rules: Rules to enforce; empty means unlimited.
            cost: Request weight; each rule consumes cost * its
                cost_per_request (just cost_per_request when None).
            now: Caller clock; one reading is shared by all rules.
            request_id: Request identity for shard selection.

        Returns:
            Decision: First denial, or the combined admission.

        Raises:
            ConfigurationError: If the key or cost is invalid.
        """
        base_key = RateLimitKey(client_identifier=client_identifier, scope=scope)
        if cost is not None:
            validate_cost(cost)
        if not rules:
            return Decision(allowed=True, remaining=0, limit=0, reason=DecisionReason.ALLOWED)

        now = time.time() if now is None else now
        ordered = sorted(rules, key=lambda rule: rule.window_seconds)

        if self._mode == CompositionMode.ALL_OR_NOTHING:
            # Peek and commit must land on the same shard.
            request_id = request_id or uuid4().hex
            for rule in ordered:
                decision = await self._limiter.peek(
                    base_key.for_rule(rule),
                    rule,
                    _units(rule, cost),
                    now=now,
                    request_id=request_id,
                )
                if not decision.allowed:
                    self._log_denial(base_key, rule, decision, committed=False)
                    return decision

        admitted: list[Decision] = []
        for rule in ordered:
            decision = await self._limiter.check(
                base_key.for_rule(rule),
                rule,
                _units(rule, cost),
                now=now,
                request_id=request_id,
            )
            if not decision.allowed:
                self._log_denial(base_key, rule, decision, committed=bool(admitted))
                return decision
            admitted.append(decision)

        return _combine(admitted)

    def _log_denial(
        self,
        key: RateLimitKey,
        rule: RateLimitRule,
        decision: Decision,
        *,
        committed: bool,
    ) -> None:
        self._logger.debug(
            "Request denied by rule",
            client=key.client_identifier,
            scope=key.scope,
            rule=rule.label,
            reason=decision.reason.value,
            retry_after_seconds=decision.retry_after_seconds,
            earlier_rules_consumed=committed,
            mode=self._mode.value,
        )


def _units(rule: RateLimitRule, cost: int | None) -> int:
    if cost is None:
        return rule.cost_per_request
    return cost * rule.cost_per_request


def _combine(decisions: list[Decision]) -> Decision:
    tightest = min(decisions, key=lambda decision: decision.remaining)
    reason = next(
        (decision.reason for decision in decisions if decision.is_degraded),
        DecisionReason.ALLOWED,
    )
    return Decision(
        allowed=True,
        remaining=tightest.remaining,
        retry_after_seconds=0.0,
        limit=tightest.limit,
        reason=reason,
    )
