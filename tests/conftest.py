"""Pytest configuration and shared fixtures.

Tests run with pytest-asyncio in auto mode; every test gets a fresh event
loop. Stores are built per test so no state leaks between tests.
"""

import inspect
from unittest.mock import Mock

import pytest

from ratekeeper.application import FallbackLimiter, RateLimiterEngine
from ratekeeper.domain.value_objects import RateLimitKey
from ratekeeper.infrastructure.store import InMemoryStore, RetryPolicy


class FakeClock:
    """Manually advanced clock for store TTLs and algorithm timestamps."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def logger() -> Mock:
    """Mock LoggerProtocol; assert on calls with logger.warning.assert_called..."""
    mock = Mock()
    mock.bind.return_value = mock
    return mock


@pytest.fixture
def store(clock: FakeClock) -> InMemoryStore:
    return InMemoryStore(
        retry_policy=RetryPolicy(max_attempts=5, base_delay=0.0, max_delay=0.0),
        clock=clock,
    )


@pytest.fixture
def fallback() -> FallbackLimiter:
    return FallbackLimiter(degraded_retry_after_seconds=1.0)


@pytest.fixture
def engine(store: InMemoryStore, fallback: FallbackLimiter, logger: Mock) -> RateLimiterEngine:
    # Generous timeout: the in-memory store never waits on I/O.
    return RateLimiterEngine(
        store=store,
        fallback=fallback,
        logger=logger,
        timeout_seconds=1.0,
    )


@pytest.fixture
def key() -> RateLimitKey:
    return RateLimitKey(client_identifier="client-42", scope="search")


# Pytest markers for different test types
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests with in-memory or mocked dependencies")
    config.addinivalue_line("markers", "integration: Integration tests against a Redis implementation")
    config.addinivalue_line("markers", "asyncio: Async test that requires event loop")


def pytest_collection_modifyitems(config, items):
    """Automatically add asyncio marker to async test functions."""
    for item in items:
        if inspect.iscoroutinefunction(item.function):
            item.add_marker(pytest.mark.asyncio)
