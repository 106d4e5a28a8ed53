"""Rate limiter protocol (port).

Implemented by RateLimiterEngine (single key) and ShardRouter (sharded
fan-out in front of the engine); the Composer depends only on this.
"""

from typing import Protocol

from ratekeeper.domain.value_objects import Decision, RateLimitKey, RateLimitRule


class RateLimiterProtocol(Protocol):
    """Single-rule admission check."""

    async def check(
        self,
        key: RateLimitKey,
        rule: RateLimitRule,
        cost: int | None = None,
        *,
        now: float | None = None,
        request_id: str | None = None,
    ) -> Decision:
        """Check and consume quota for one rule.

        Args:
            key: Client + scope key.
            rule: Rule to enforce.
            cost: Cost units; None means rule.cost_per_request.
            now: Caller clock in epoch seconds; None means time.time().
            request_id: Request identity (used for shard selection).

        Returns:
            Decision: Never raises for runtime conditions.

        Raises:
            ConfigurationError: If cost < 1.
        """
        ...

    async def peek(
        self,
        key: RateLimitKey,
        rule: RateLimitRule,
        cost: int | None = None,
        *,
        now: float | None = None,
        request_id: str | None = None,
    ) -> Decision:
        """Evaluate a check without consuming quota."""
        ...
