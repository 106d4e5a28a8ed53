"""Rate limit key value object.

The sole addressing unit for atomicity: every correctness guarantee is per
key, never across keys.

Key format:
    ratelimit:{algorithm}:{client_identifier}:{scope}[:{shard_index}]
"""

from dataclasses import dataclass, replace

from ratekeeper.core.enums import ErrorCode
from ratekeeper.domain.enums import RateLimitAlgorithm
from ratekeeper.domain.errors import ConfigurationError
from ratekeeper.domain.value_objects.rate_limit_rule import RateLimitRule

KEY_PREFIX = "ratelimit"


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitKey:
    """Client + scope (+ shard) composite key.

    Attributes:
        client_identifier: Opaque caller identity (API key, user id, IP).
        scope: What is being limited (endpoint or operation name).
        shard_index: Sub-key index for hot-key sharding, None if unsharded.
    """

    client_identifier: str
    scope: str
    shard_index: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.client_identifier, str) or not self.client_identifier:
            raise ConfigurationError(
                "client_identifier must be a non-empty string",
                code=ErrorCode.INVALID_KEY,
                field="client_identifier",
            )
        if not isinstance(self.scope, str) or not self.scope:
            raise ConfigurationError(
                "scope must be a non-empty string",
                code=ErrorCode.INVALID_KEY,
                field="scope",
            )
        if self.shard_index is not None and self.shard_index < 0:
            raise ConfigurationError(
                f"shard_index must be >= 0, got {self.shard_index}",
                code=ErrorCode.INVALID_KEY,
                field="shard_index",
            )

    def with_shard(self, shard_index: int) -> "RateLimitKey":
        """Return a copy addressing a single shard."""
        return replace(self, shard_index=shard_index)

    def for_rule(self, rule: RateLimitRule) -> "RateLimitKey":
        """Return a copy whose scope is private to one rule of a composed set.

        Example:
            key.for_rule(RateLimitRule(limit=10, window_seconds=1.0, name="burst")).scope
            # "search#burst"
        """
        return replace(self, scope=f"{self.scope}#{rule.label}")

    def storage_key(self, algorithm: RateLimitAlgorithm) -> str:
        """Render the backing store key for an algorithm.

        Example:
            RateLimitKey(client_identifier="c1", scope="search").storage_key(
                RateLimitAlgorithm.TOKEN_BUCKET
            )
            # "ratelimit:token_bucket:c1:search"
        """
        key = f"{KEY_PREFIX}:{algorithm.value}:{self.client_identifier}:{self.scope}"
        if self.shard_index is not None:
            key = f"{key}:{self.shard_index}"
        return key
