"""Rate limit rule documents.

Rules are declared as plain data (tier -> scope -> list of rule entries),
validated with pydantic, and turned into immutable RateLimitRule values.
A scope of "*" applies to every scope of the tier that has no entry of
its own.

Two-Tier Configuration Pattern:
    Tier 1 - Which tier a client belongs to: decided by the caller
        (plan, API key type) and passed to Composer.admit().
    Tier 2 - What each tier gets: the document below.

    To change limits for ONE endpoint of a tier: add a scope entry.
    To change limits for ALL endpoints of a tier: edit its "*" entry.

Usage:
    from ratekeeper.config import DEFAULT_RULES, build_rules

    rules_by_tier = build_rules(DEFAULT_RULES)
    rules_by_tier["free"]["*"]  # [RateLimitRule(limit=5, ...), ...]
"""

from collections.abc import Mapping, Sequence
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ratekeeper.core.enums import ErrorCode
from ratekeeper.domain.enums import FallbackPolicy, RateLimitAlgorithm
from ratekeeper.domain.errors import ConfigurationError
from ratekeeper.domain.value_objects import RateLimitRule

WILDCARD_SCOPE = "*"

RuleDocument: TypeAlias = Mapping[str, Mapping[str, Sequence[Mapping[str, Any]]]]
RulesByTier: TypeAlias = dict[str, dict[str, list[RateLimitRule]]]


class RuleConfig(BaseModel):
    """One rule entry as it appears in a rule document.

    Unknown fields are rejected so typos fail loudly instead of silently
    falling back to defaults.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    limit: int = Field(gt=0)
    window_seconds: float = Field(gt=0, allow_inf_nan=False)
    algorithm: RateLimitAlgorithm = RateLimitAlgorithm.TOKEN_BUCKET
    cost_per_request: int = Field(default=1, ge=1)
    fallback_policy: FallbackPolicy = FallbackPolicy.FAIL_OPEN
    shard_count: int = Field(default=1, ge=1)
    name: str | None = None

    def to_rule(self) -> RateLimitRule:
        """Build the domain rule (runs cross-field validation)."""
        return RateLimitRule(
            limit=self.limit,
            window_seconds=self.window_seconds,
            algorithm=self.algorithm,
            cost_per_request=self.cost_per_request,
            fallback_policy=self.fallback_policy,
            shard_count=self.shard_count,
            name=self.name,
        )


def build_rules(document: RuleDocument) -> RulesByTier:
    """Validate a rule document and build domain rules.

    Args:
        document: tier -> scope -> list of rule entries.

    Returns:
        RulesByTier: tier -> scope -> list of RateLimitRule.

    Raises:
        ConfigurationError: If any entry is invalid. The message names the
            tier, scope and entry index.
    """
    rules: RulesByTier = {}
    for tier, scopes in document.items():
        rules[tier] = {}
        for scope, entries in scopes.items():
            built: list[RateLimitRule] = []
            for index, entry in enumerate(entries):
                try:
                    built.append(RuleConfig.model_validate(entry).to_rule())
                except ValidationError as e:
                    first = e.errors()[0]
                    field = ".".join(str(part) for part in first["loc"]) or None
                    raise ConfigurationError(
                        f"Invalid rule {tier}/{scope}[{index}]: {first['msg']}",
                        code=ErrorCode.INVALID_RULE,
                        field=field,
                    ) from e
            rules[tier][scope] = built
    return rules


# Default rule set: every tier gets a burst limit and a long-window quota.
DEFAULT_RULES: RuleDocument = {
    "free": {
        WILDCARD_SCOPE: [
            {"name": "burst", "limit": 5, "window_seconds": 1.0},
            {
                "name": "hourly",
                "limit": 500,
                "window_seconds": 3600.0,
                "algorithm": RateLimitAlgorithm.SLIDING_WINDOW_COUNTER,
            },
        ],
    },
    "pro": {
        WILDCARD_SCOPE: [
            {"name": "burst", "limit": 50, "window_seconds": 1.0},
            {
                "name": "hourly",
                "limit": 20000,
                "window_seconds": 3600.0,
                "algorithm": RateLimitAlgorithm.SLIDING_WINDOW_COUNTER,
                "fallback_policy": FallbackPolicy.LOCAL_APPROXIMATE,
            },
        ],
        "export": [
            {
                "name": "export-minute",
                "limit": 10,
                "window_seconds": 60.0,
                "algorithm": RateLimitAlgorithm.SLIDING_WINDOW_LOG,
                "fallback_policy": FallbackPolicy.FAIL_CLOSED,
            },
        ],
    },
}
