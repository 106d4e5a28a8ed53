"""Rate limit algorithm enumeration.

Each rule names the algorithm that enforces it. The value is also the
algorithm segment of the persisted key, so state written by one algorithm is
never decoded by another:

    ratelimit:{algorithm}:{client_identifier}:{scope}[:{shard_index}]
"""

from enum import Enum


class RateLimitAlgorithm(str, Enum):
    """Admission algorithms.

    String Enum:
        Inherits from str so values serialize directly into keys and rule
        documents.
    """

    TOKEN_BUCKET = "token_bucket"
    """Refillable bucket of tokens.

    Allows bursts up to the limit, then a steady refill of
    limit / window_seconds tokens per second. O(1) state.
    """

    SLIDING_WINDOW_LOG = "sliding_window_log"
    """Exact trailing window.

    Keeps one timestamped entry per admitted request (weighted by cost).
    Memory grows with request count, so it cannot be sharded.
    """

    SLIDING_WINDOW_COUNTER = "sliding_window_counter"
    """Approximate trailing window.

    Two aligned window counters blended by overlap. O(1) state, smooth
    enforcement, slightly approximate at window boundaries.
    """

    @property
    def supports_sharding(self) -> bool:
        """Whether per-shard limits can be enforced independently."""
        return self is not RateLimitAlgorithm.SLIDING_WINDOW_LOG
