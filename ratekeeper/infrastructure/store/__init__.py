"""Backing store implementations.

Usage:
    from ratekeeper.infrastructure.store import InMemoryStore, RedisStore, RetryPolicy
"""

from ratekeeper.infrastructure.store.in_memory_store import InMemoryStore
from ratekeeper.infrastructure.store.redis_store import RedisStore
from ratekeeper.infrastructure.store.retry import RetryPolicy, WriteConflict, run_with_retry

__all__ = [
    "InMemoryStore",
    "RedisStore",
    "RetryPolicy",
    "WriteConflict",
    "run_with_retry",
]
