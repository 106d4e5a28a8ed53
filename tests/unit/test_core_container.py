"""Unit tests for the dependency container.

Tests cover:
- Store selection from settings.store_backend
- Settings flowing into engine, fallback and composer
- Singleton pattern (same instance returned)
"""

from unittest.mock import patch

import pytest

from ratekeeper.application import Composer, RateLimiterEngine, ShardRouter
from ratekeeper.core import container
from ratekeeper.core.config import Settings
from ratekeeper.core.enums import Environment, StoreBackend
from ratekeeper.domain.enums import CompositionMode, DecisionReason
from ratekeeper.infrastructure.logging import ConsoleAdapter
from ratekeeper.infrastructure.rate_limit import CachingConfigResolver
from ratekeeper.infrastructure.store import InMemoryStore, RedisStore

FACTORIES = (
    container.get_logger,
    container.get_redis_client,
    container.get_backing_store,
    container.get_fallback_limiter,
    container.get_engine,
    container.get_shard_router,
    container.get_config_resolver,
    container.get_composer,
)


@pytest.fixture(autouse=True)
def clear_container():
    for factory in FACTORIES:
        factory.cache_clear()
    yield
    for factory in FACTORIES:
        factory.cache_clear()


def _settings(**overrides) -> Settings:
    overrides.setdefault("environment", Environment.TESTING)
    return Settings(**overrides)


@pytest.mark.unit
class TestContainer:
    """Test factory wiring."""

    def test_memory_backend(self):
        """Test store_backend=memory builds an InMemoryStore."""
        with patch.object(container, "settings", _settings(store_backend=StoreBackend.MEMORY)):
            assert isinstance(container.get_backing_store(), InMemoryStore)

    def test_redis_backend(self):
        """Test store_backend=redis builds a RedisStore (no connection until use)."""
        with patch.object(container, "settings", _settings(store_backend=StoreBackend.REDIS)):
            assert isinstance(container.get_backing_store(), RedisStore)

    def test_logger_is_console_adapter(self):
        """Test get_logger() returns a ConsoleAdapter singleton."""
        with patch.object(container, "settings", _settings()):
            logger = container.get_logger()

            assert isinstance(logger, ConsoleAdapter)
            assert container.get_logger() is logger

    def test_composer_wiring(self):
        """Test the composer uses the router, resolver and configured mode."""
        settings = _settings(
            store_backend=StoreBackend.MEMORY,
            composition_mode=CompositionMode.ALL_OR_NOTHING,
        )
        with patch.object(container, "settings", settings):
            composer = container.get_composer()

            assert isinstance(composer, Composer)
            assert composer.mode == CompositionMode.ALL_OR_NOTHING
            assert isinstance(container.get_shard_router(), ShardRouter)
            assert isinstance(container.get_engine(), RateLimiterEngine)
            assert isinstance(container.get_config_resolver(), CachingConfigResolver)
            assert container.get_composer() is composer

    async def test_default_rules_admit_end_to_end(self):
        """Test a free-tier client is limited by the default burst rule."""
        settings = _settings(store_backend=StoreBackend.MEMORY, store_timeout_ms=1000)
        with patch.object(container, "settings", settings):
            composer = container.get_composer()

            decisions = [
                await composer.admit("free", "client-1", "search", now=3600.0) for _ in range(6)
            ]

        assert [d.allowed for d in decisions] == [True] * 5 + [False]
        assert decisions[-1].reason == DecisionReason.RATE_EXCEEDED

    async def test_unknown_tier_uses_default_tier(self):
        """Test unknown tiers resolve to the free tier."""
        with patch.object(container, "settings", _settings(store_backend=StoreBackend.MEMORY)):
            rules = container.get_config_resolver().resolve("enterprise", "search")

        assert [rule.name for rule in rules] == ["burst", "hourly"]
