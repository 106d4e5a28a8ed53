"""Rate limit rule value object.

Immutable description of one quota: how much (limit), over what period
(window_seconds), how heavy each request is (cost_per_request), which
algorithm enforces it, and what happens when the backing store is down.

Rules are resolved fresh per request from a ConfigResolver and are never
mutated by the engine.

Usage:
    from ratekeeper.domain.enums import RateLimitAlgorithm
    from ratekeeper.domain.value_objects import RateLimitRule

    # 10 requests per second with bursts up to 10
    burst = RateLimitRule(
        limit=10,
        window_seconds=1.0,
        algorithm=RateLimitAlgorithm.TOKEN_BUCKET,
    )

    # 1000 requests per hour, approximate sliding window
    hourly = RateLimitRule(
        limit=1000,
        window_seconds=3600.0,
        algorithm=RateLimitAlgorithm.SLIDING_WINDOW_COUNTER,
    )
"""

import math
from dataclasses import dataclass, replace

from ratekeeper.core.enums import ErrorCode
from ratekeeper.domain.enums import FallbackPolicy, RateLimitAlgorithm
from ratekeeper.domain.errors import ConfigurationError


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitRule:
    """Rate limit rule configuration (value object).

    Attributes:
        limit: Requests (cost units) allowed per window. For a token bucket
            this is also the burst capacity.
        window_seconds: Window length. Token bucket refill rate is
            limit / window_seconds tokens per second.
        algorithm: Admission algorithm enforcing this rule.
        cost_per_request: Cost units one request consumes by default.
        fallback_policy: Degraded-mode behaviour while the store is down.
        shard_count: Number of sub-keys a hot key is split across. 1 means
            unsharded.
        name: Optional label used in logs.

    Raises:
        ConfigurationError: If any field is invalid. Nothing is defaulted.
    """

    limit: int
    window_seconds: float
    algorithm: RateLimitAlgorithm = RateLimitAlgorithm.TOKEN_BUCKET
    cost_per_request: int = 1
    fallback_policy: FallbackPolicy = FallbackPolicy.FAIL_OPEN
    shard_count: int = 1
    name: str | None = None

    def __post_init__(self) -> None:
        """Validate rule configuration after initialization.

        Raises:
            ConfigurationError: If any field is invalid.
        """
        if not _is_int(self.limit) or self.limit <= 0:
            raise ConfigurationError(
                f"limit must be a positive integer, got {self.limit!r}",
                field="limit",
            )
        if (
            not isinstance(self.window_seconds, (int, float))
            or isinstance(self.window_seconds, bool)
            or not math.isfinite(self.window_seconds)
            or self.window_seconds <= 0
        ):
            raise ConfigurationError(
                f"window_seconds must be a positive finite number, got {self.window_seconds!r}",
                field="window_seconds",
            )
        if not _is_int(self.cost_per_request) or self.cost_per_request < 1:
            raise ConfigurationError(
                f"cost_per_request must be an integer >= 1, got {self.cost_per_request!r}",
                field="cost_per_request",
            )
        if not isinstance(self.algorithm, RateLimitAlgorithm):
            raise ConfigurationError(
                f"algorithm must be a RateLimitAlgorithm, got {self.algorithm!r}",
                field="algorithm",
            )
        if not isinstance(self.fallback_policy, FallbackPolicy):
            raise ConfigurationError(
                f"fallback_policy must be a FallbackPolicy, got {self.fallback_policy!r}",
                field="fallback_policy",
            )
        if not _is_int(self.shard_count) or self.shard_count < 1:
            raise ConfigurationError(
                f"shard_count must be an integer >= 1, got {self.shard_count!r}",
                field="shard_count",
            )
        if self.shard_count > 1:
            if not self.algorithm.supports_sharding:
                raise ConfigurationError(
                    f"{self.algorithm.value} cannot be sharded",
                    field="shard_count",
                )
            if self.shard_count > self.limit:
                raise ConfigurationError(
                    f"shard_count ({self.shard_count}) exceeds limit ({self.limit}); "
                    "every shard needs a limit of at least 1",
                    field="shard_count",
                )

    @property
    def refill_rate(self) -> float:
        """Token bucket refill rate in tokens per second.

        Example:
            RateLimitRule(limit=10, window_seconds=5.0).refill_rate  # 2.0
        """
        return self.limit / self.window_seconds

    @property
    def label(self) -> str:
        """Name for logs: explicit name or a limit/window summary."""
        return self.name or f"{self.limit}/{self.window_seconds:g}s"

    def ttl_seconds(self, multiplier: float = 2.0) -> float:
        """Lifetime of this rule's state after the last write.

        Args:
            multiplier: Multiple of the window (k). Must be >= 1.

        Returns:
            float: TTL in seconds.
        """
        return self.window_seconds * multiplier

    def for_shard(self, shard_index: int) -> "RateLimitRule":
        """Derive the rule one shard enforces.

        The parent limit is divided so that the shard limits sum exactly
        to it: shards below ``limit % shard_count`` get one extra unit.

        Args:
            shard_index: Shard in [0, shard_count).

        Returns:
            RateLimitRule: Unsharded copy with the shard-local limit.

        Raises:
            ConfigurationError: If shard_index is out of range.
        """
        if not 0 <= shard_index < self.shard_count:
            raise ConfigurationError(
                f"shard_index {shard_index} out of range for {self.shard_count} shards",
                code=ErrorCode.INVALID_KEY,
                field="shard_index",
            )
        base, extra = divmod(self.limit, self.shard_count)
        shard_limit = base + (1 if shard_index < extra else 0)
        return replace(self, limit=shard_limit, shard_count=1)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
