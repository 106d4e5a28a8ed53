"""Rule resolution adapters."""

from ratekeeper.infrastructure.rate_limit.config_resolver import (
    CachingConfigResolver,
    StaticConfigResolver,
)

__all__ = ["CachingConfigResolver", "StaticConfigResolver"]
