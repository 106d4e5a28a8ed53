"""Backing store selection for the dependency container."""

from enum import Enum


class StoreBackend(str, Enum):
    """Backing store implementations the container can build.

    Attributes:
        REDIS: Shared Redis instance (production default).
        MEMORY: Process-local in-memory store (tests, single-node use).
    """

    REDIS = "redis"
    MEMORY = "memory"
