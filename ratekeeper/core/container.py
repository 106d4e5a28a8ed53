"""Dependency factories (composition root).

Application-scoped singletons wiring the engine from settings:
- Logging (structlog console adapter)
- Backing store (Redis or in-memory)
- Fallback limiter, engine, shard router
- Rule resolver and composer

Usage:
    from ratekeeper.core.container import get_composer

    composer = get_composer()
    decision = await composer.admit("free", "client-42", "search")

Tests call `<factory>.cache_clear()` after changing settings.
"""

from functools import lru_cache
from typing import TYPE_CHECKING

from ratekeeper.core.config import settings
from ratekeeper.core.enums import Environment, StoreBackend

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from ratekeeper.application import (
        Composer,
        FallbackLimiter,
        RateLimiterEngine,
        ShardRouter,
    )
    from ratekeeper.domain.protocols import (
        BackingStoreProtocol,
        ConfigResolverProtocol,
        LoggerProtocol,
    )


@lru_cache()
def get_logger() -> "LoggerProtocol":
    """Return the application-scoped logger singleton.

    - development: ConsoleAdapter (human-readable)
    - testing/ci/production: ConsoleAdapter (JSON)
    """
    from ratekeeper.infrastructure.logging import ConsoleAdapter

    use_json = settings.environment != Environment.DEVELOPMENT
    return ConsoleAdapter(use_json=use_json, level=settings.log_level)


@lru_cache()
def get_redis_client() -> "Redis":
    """Get the shared async Redis client (connection pooled).

    Socket timeouts stay generous; the per-call budget is enforced by the
    store with asyncio.timeout.
    """
    from redis.asyncio import ConnectionPool, Redis

    pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=50,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        socket_keepalive=True,
    )
    return Redis(connection_pool=pool)


@lru_cache()
def get_backing_store() -> "BackingStoreProtocol":
    """Get the backing store selected by settings.store_backend."""
    from ratekeeper.infrastructure.store import InMemoryStore, RedisStore, RetryPolicy

    retry_policy = RetryPolicy(
        max_attempts=settings.cas_max_attempts,
        base_delay=settings.cas_backoff_base_ms / 1000.0,
        max_delay=settings.cas_backoff_max_ms / 1000.0,
    )
    if settings.store_backend == StoreBackend.MEMORY:
        return InMemoryStore(retry_policy=retry_policy)
    return RedisStore(get_redis_client(), retry_policy=retry_policy)


@lru_cache()
def get_fallback_limiter() -> "FallbackLimiter":
    """Get the process-local degraded-mode limiter."""
    from ratekeeper.application import FallbackLimiter

    return FallbackLimiter(
        degraded_retry_after_seconds=settings.degraded_retry_after_seconds,
        ttl_multiplier=settings.ttl_multiplier,
    )


@lru_cache()
def get_engine() -> "RateLimiterEngine":
    """Get the rate limiter engine singleton."""
    from ratekeeper.application import RateLimiterEngine

    return RateLimiterEngine(
        store=get_backing_store(),
        fallback=get_fallback_limiter(),
        logger=get_logger().bind(component="engine"),
        timeout_seconds=settings.store_timeout_seconds,
        ttl_multiplier=settings.ttl_multiplier,
    )


@lru_cache()
def get_shard_router() -> "ShardRouter":
    """Get the shard router in front of the engine."""
    from ratekeeper.application import ShardRouter

    return ShardRouter(engine=get_engine())


@lru_cache()
def get_config_resolver() -> "ConfigResolverProtocol":
    """Get the rule resolver: default rule document behind a TTL cache."""
    from ratekeeper.config import DEFAULT_RULES
    from ratekeeper.infrastructure.rate_limit import (
        CachingConfigResolver,
        StaticConfigResolver,
    )

    return CachingConfigResolver(
        StaticConfigResolver.from_document(DEFAULT_RULES, default_tier="free"),
        ttl_seconds=settings.rule_cache_ttl_seconds,
    )


@lru_cache()
def get_composer() -> "Composer":
    """Get the composer, the main entry point for admission checks."""
    from ratekeeper.application import Composer

    return Composer(
        limiter=get_shard_router(),
        logger=get_logger().bind(component="composer"),
        resolver=get_config_resolver(),
        mode=settings.composition_mode,
    )
