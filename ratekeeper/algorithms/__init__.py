"""Admission algorithm strategies.

Usage:
    from ratekeeper.algorithms import get_strategy

    strategy = get_strategy(RateLimitAlgorithm.SLIDING_WINDOW_COUNTER)
"""

from ratekeeper.algorithms.base import AdmissionStrategy
from ratekeeper.algorithms.sliding_window_counter import SlidingWindowCounterStrategy
from ratekeeper.algorithms.sliding_window_log import SlidingWindowLogStrategy
from ratekeeper.algorithms.token_bucket import TokenBucketStrategy
from ratekeeper.domain.enums import RateLimitAlgorithm

_STRATEGIES: dict[RateLimitAlgorithm, AdmissionStrategy] = {
    RateLimitAlgorithm.TOKEN_BUCKET: TokenBucketStrategy(),
    RateLimitAlgorithm.SLIDING_WINDOW_LOG: SlidingWindowLogStrategy(),
    RateLimitAlgorithm.SLIDING_WINDOW_COUNTER: SlidingWindowCounterStrategy(),
}


def get_strategy(algorithm: RateLimitAlgorithm) -> AdmissionStrategy:
    """Return the stateless strategy instance for an algorithm."""
    return _STRATEGIES[algorithm]


__all__ = [
    "AdmissionStrategy",
    "SlidingWindowCounterStrategy",
    "SlidingWindowLogStrategy",
    "TokenBucketStrategy",
    "get_strategy",
]
