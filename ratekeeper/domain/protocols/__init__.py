"""Domain protocols (ports).

Infrastructure and application classes satisfy these structurally; none of
them inherit from the protocols.

Usage:
    from ratekeeper.domain.protocols import BackingStoreProtocol, LoggerProtocol
"""

from ratekeeper.domain.protocols.backing_store_protocol import (
    BackingStoreProtocol,
    StateTransform,
)
from ratekeeper.domain.protocols.config_resolver_protocol import ConfigResolverProtocol
from ratekeeper.domain.protocols.logger_protocol import LoggerProtocol
from ratekeeper.domain.protocols.rate_limiter_protocol import RateLimiterProtocol

__all__ = [
    "BackingStoreProtocol",
    "ConfigResolverProtocol",
    "LoggerProtocol",
    "RateLimiterProtocol",
    "StateTransform",
]
