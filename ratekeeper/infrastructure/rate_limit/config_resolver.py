"""Rule resolvers implementing ConfigResolverProtocol.

StaticConfigResolver serves a validated in-memory rule set.
CachingConfigResolver sits in front of any resolver so that rule changes in
the source become visible after at most ttl_seconds, while repeated lookups
inside that period cost a dict hit.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from ratekeeper.config.rate_limits import (
    WILDCARD_SCOPE,
    RuleDocument,
    RulesByTier,
    build_rules,
)
from ratekeeper.core.enums import ErrorCode
from ratekeeper.domain.errors import ConfigurationError
from ratekeeper.domain.value_objects import RateLimitRule

if TYPE_CHECKING:
    from ratekeeper.domain.protocols import ConfigResolverProtocol


class StaticConfigResolver:
    """Resolves rules from a fixed tier -> scope -> rules mapping.

    Lookup order for (tier, scope):
        1. tier, or default_tier when the tier is unknown
        2. exact scope, else the "*" entry, else no rules

    Args:
        rules_by_tier: Validated rules.
        default_tier: Tier used for unknown tiers. None makes unknown tiers
            an error.
    """

    def __init__(self, rules_by_tier: RulesByTier, *, default_tier: str | None = None) -> None:
        if default_tier is not None and default_tier not in rules_by_tier:
            raise ConfigurationError(
                f"default tier '{default_tier}' has no rules",
                code=ErrorCode.RULES_NOT_FOUND,
                field="default_tier",
            )
        self._rules = rules_by_tier
        self._default_tier = default_tier

    @classmethod
    def from_document(
        cls, document: RuleDocument, *, default_tier: str | None = None
    ) -> StaticConfigResolver:
        """Validate a rule document and build a resolver from it.

        Raises:
            ConfigurationError: If the document is invalid.
        """
        return cls(build_rules(document), default_tier=default_tier)

    def resolve(self, client_tier: str, scope: str) -> list[RateLimitRule]:
        tier_rules = self._rules.get(client_tier)
        if tier_rules is None and self._default_tier is not None:
            tier_rules = self._rules[self._default_tier]
        if tier_rules is None:
            raise ConfigurationError(
                f"No rules configured for tier '{client_tier}'",
                code=ErrorCode.RULES_NOT_FOUND,
                field="client_tier",
            )
        if scope in tier_rules:
            return list(tier_rules[scope])
        return list(tier_rules.get(WILDCARD_SCOPE, []))


class CachingConfigResolver:
    """TTL cache in front of another resolver.

    Expired resolutions are swept on a miss at most once per TTL, so the
    cache only holds (tier, scope) pairs seen within the last two TTLs.

    Args:
        inner: Resolver consulted on a miss or after expiry.
        ttl_seconds: How long one resolution is reused.
        clock: Monotonic clock; defaults to time.monotonic.
    """

    def __init__(
        self,
        inner: ConfigResolverProtocol,
        *,
        ttl_seconds: float,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._inner = inner
        self._ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._cache: dict[tuple[str, str], tuple[float, list[RateLimitRule]]] = {}
        self._next_sweep = self._clock() + ttl_seconds

    def resolve(self, client_tier: str, scope: str) -> list[RateLimitRule]:
        now = self._clock()
        cached = self._cache.get((client_tier, scope))
        if cached is not None and now < cached[0]:
            return list(cached[1])
        self._sweep(now)
        rules = self._inner.resolve(client_tier, scope)
        self._cache[(client_tier, scope)] = (now + self._ttl_seconds, list(rules))
        return list(rules)

    def invalidate(self) -> None:
        """Drop every cached resolution."""
        self._cache.clear()

    def cached_count(self) -> int:
        """Number of (tier, scope) resolutions currently held."""
        return len(self._cache)

    def _sweep(self, now: float) -> None:
        # At most once per TTL; an entry outlives its expiry by under one TTL.
        if now < self._next_sweep:
            return
        self._cache = {
            pair: cached for pair, cached in self._cache.items() if now < cached[0]
        }
        self._next_sweep = now + self._ttl_seconds
