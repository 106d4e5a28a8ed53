"""Domain value objects.

Usage:
    from ratekeeper.domain.value_objects import Decision, RateLimitKey, RateLimitRule
"""

from ratekeeper.domain.value_objects.bucket_state import (
    TokenBucketState,
    WindowCounterState,
    WindowLogState,
)
from ratekeeper.domain.value_objects.decision import Decision
from ratekeeper.domain.value_objects.rate_limit_key import RateLimitKey
from ratekeeper.domain.value_objects.rate_limit_rule import RateLimitRule

__all__ = [
    "Decision",
    "RateLimitKey",
    "RateLimitRule",
    "TokenBucketState",
    "WindowCounterState",
    "WindowLogState",
]
