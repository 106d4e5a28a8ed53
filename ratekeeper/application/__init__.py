"""Application layer - admission control orchestration.

- engine: single rule, single key, one atomic store call per check
- shard_router: hot-key sharding in front of the engine
- fallback_limiter: degraded-mode decisions while the store is down
- composer: several rules combined into one decision
"""

from ratekeeper.application.composer import Composer
from ratekeeper.application.engine import RateLimiterEngine, resolve_cost, validate_cost
from ratekeeper.application.fallback_limiter import FallbackLimiter
from ratekeeper.application.shard_router import ShardRouter

__all__ = [
    "Composer",
    "FallbackLimiter",
    "RateLimiterEngine",
    "ShardRouter",
    "resolve_cost",
    "validate_cost",
]
