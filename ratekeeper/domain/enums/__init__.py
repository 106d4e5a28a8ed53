"""Domain enums package.

Usage:
    from ratekeeper.domain.enums import RateLimitAlgorithm, FallbackPolicy
"""

from ratekeeper.domain.enums.composition_mode import CompositionMode
from ratekeeper.domain.enums.decision_reason import DecisionReason
from ratekeeper.domain.enums.fallback_policy import FallbackPolicy
from ratekeeper.domain.enums.rate_limit_algorithm import RateLimitAlgorithm

__all__ = [
    "CompositionMode",
    "DecisionReason",
    "FallbackPolicy",
    "RateLimitAlgorithm",
]
