"""Token Bucket admission algorithm.

Algorithm Overview:
    1. A new bucket starts full (limit tokens)
    2. Tokens refill continuously at limit / window_seconds per second
    3. The bucket never exceeds capacity and never goes negative
    4. A request is admitted if the bucket holds at least `cost` tokens

Example:
    limit=10, window_seconds=5.0 (2 tokens/s)
    - t=0: 15 requests -> 10 admitted, 5 denied with retry_after=0.5s
    - t=1: 2 tokens refilled -> exactly 2 more admitted
    - idle 1000s: bucket holds 10 tokens, not 2000
"""

import math

from ratekeeper.algorithms.base import EPSILON, AdmissionStrategy
from ratekeeper.domain.enums import DecisionReason, RateLimitAlgorithm
from ratekeeper.domain.value_objects import Decision, RateLimitRule, TokenBucketState


class TokenBucketStrategy(AdmissionStrategy[TokenBucketState]):
    """Token bucket over TokenBucketState."""

    algorithm = RateLimitAlgorithm.TOKEN_BUCKET

    def initial_state(self, rule: RateLimitRule, now: float) -> TokenBucketState:
        return TokenBucketState(tokens=float(rule.limit), last_refill_at=now)

    def decode(self, raw: str) -> TokenBucketState:
        return TokenBucketState.from_json(raw)

    def encode(self, state: TokenBucketState) -> str:
        return state.to_json()

    def evaluate(
        self,
        state: TokenBucketState,
        rule: RateLimitRule,
        cost: int,
        now: float,
    ) -> tuple[TokenBucketState, Decision]:
        capacity = float(rule.limit)
        refill_rate = rule.refill_rate

        # Clock skew: a caller behind the last writer gets no refill and
        # does not move the refill point backwards.
        elapsed = max(0.0, now - state.last_refill_at)
        refilled_at = max(now, state.last_refill_at)
        tokens = min(capacity, max(0.0, state.tokens) + elapsed * refill_rate)

        if tokens + EPSILON >= cost:
            tokens = max(0.0, tokens - cost)
            return (
                TokenBucketState(tokens=tokens, last_refill_at=refilled_at),
                Decision(
                    allowed=True,
                    remaining=math.floor(tokens + EPSILON),
                    retry_after_seconds=0.0,
                    limit=rule.limit,
                    reason=DecisionReason.ALLOWED,
                ),
            )

        return (
            TokenBucketState(tokens=tokens, last_refill_at=refilled_at),
            Decision(
                allowed=False,
                remaining=math.floor(tokens + EPSILON),
                retry_after_seconds=(cost - tokens) / refill_rate,
                limit=rule.limit,
                reason=DecisionReason.RATE_EXCEEDED,
            ),
        )
