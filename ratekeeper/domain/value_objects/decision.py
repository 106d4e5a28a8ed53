"""Admission decision value object.

The only object returned to callers. It never exposes bucket state.
"""

import math
from dataclasses import dataclass

from ratekeeper.domain.enums import DecisionReason


@dataclass(frozen=True, slots=True, kw_only=True)
class Decision:
    """Result of an admission check.

    Attributes:
        allowed: Whether the unit of work is admitted.
        remaining: Whole cost units left after this decision.
        retry_after_seconds: When a denied caller may retry. 0.0 if allowed,
            math.inf if the request can never fit (cost above limit).
        limit: Limit of the rule that produced the decision.
        reason: Why the decision came out this way.
    """

    allowed: bool
    remaining: int = 0
    retry_after_seconds: float = 0.0
    limit: int = 0
    reason: DecisionReason = DecisionReason.ALLOWED

    @property
    def is_degraded(self) -> bool:
        """True when made without the backing store."""
        return self.reason.is_degraded

    def as_headers(self) -> dict[str, str]:
        """Conventional rate limit response metadata.

        Status-code mapping stays with the transport layer.

        Returns:
            dict[str, str]: X-RateLimit-Limit, X-RateLimit-Remaining and,
            for finite denials, Retry-After (whole seconds, rounded up).
        """
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
        }
        if not self.allowed and math.isfinite(self.retry_after_seconds):
            headers["Retry-After"] = str(math.ceil(self.retry_after_seconds))
        return headers
