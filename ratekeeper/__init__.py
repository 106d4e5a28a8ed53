"""Ratekeeper: distributed rate limiting and admission control.

Ratekeeper decides, per unit of work, whether to admit or reject it while
many independent caller processes check the same quota concurrently. State
lives in a shared backing store that supports atomic read-modify-write per
key; when that store is unreachable each rule's fallback policy decides what
happens.

Architecture:
    - domain/: Value objects (rules, keys, decisions, bucket state), enums,
      errors and protocols (ports).
    - algorithms/: Pure admission strategies (token bucket, sliding window
      log, sliding window counter).
    - infrastructure/: Backing stores (Redis, in-memory), logging, rule
      resolution.
    - application/: Engine, shard router, fallback limiter, composer.
    - core/: Settings, Result types, error codes, dependency container.

Quick Start:
    ```python
    from ratekeeper import (
        Composer,
        ConsoleAdapter,
        FallbackLimiter,
        InMemoryStore,
        RateLimitAlgorithm,
        RateLimiterEngine,
        RateLimitRule,
        ShardRouter,
    )

    engine = RateLimiterEngine(
        store=InMemoryStore(),
        fallback=FallbackLimiter(),
        logger=ConsoleAdapter(),
    )
    composer = Composer(limiter=ShardRouter(engine=engine), logger=ConsoleAdapter())

    rules = [
        RateLimitRule(limit=10, window_seconds=1.0, algorithm=RateLimitAlgorithm.TOKEN_BUCKET),
        RateLimitRule(limit=300, window_seconds=60.0, algorithm=RateLimitAlgorithm.SLIDING_WINDOW_COUNTER),
    ]
    decision = await composer.check("client-42", "search", rules)
    if not decision.allowed:
        ...  # reject with decision.retry_after_seconds
    ```
"""

from ratekeeper.application.composer import Composer
from ratekeeper.application.engine import RateLimiterEngine
from ratekeeper.application.fallback_limiter import FallbackLimiter
from ratekeeper.application.shard_router import ShardRouter
from ratekeeper.domain.enums import (
    CompositionMode,
    DecisionReason,
    FallbackPolicy,
    RateLimitAlgorithm,
)
from ratekeeper.domain.errors import ConfigurationError, StoreError
from ratekeeper.domain.value_objects import Decision, RateLimitKey, RateLimitRule
from ratekeeper.infrastructure.logging import ConsoleAdapter
from ratekeeper.infrastructure.store import InMemoryStore, RedisStore, RetryPolicy

__all__ = [
    # Application
    "Composer",
    "FallbackLimiter",
    "RateLimiterEngine",
    "ShardRouter",
    # Domain
    "CompositionMode",
    "ConfigurationError",
    "Decision",
    "DecisionReason",
    "FallbackPolicy",
    "RateLimitAlgorithm",
    "RateLimitKey",
    "RateLimitRule",
    "StoreError",
    # Infrastructure
    "ConsoleAdapter",
    "InMemoryStore",
    "RedisStore",
    "RetryPolicy",
]
