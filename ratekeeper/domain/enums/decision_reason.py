"""Why a Decision came out the way it did."""

from enum import Enum


class DecisionReason(str, Enum):
    """Outcome classification carried on every Decision.

    Lets operators tell "legitimately too expensive" from "rate exceeded",
    and enforced decisions from degraded ones.
    """

    ALLOWED = "allowed"
    RATE_EXCEEDED = "rate_exceeded"
    COST_EXCEEDS_LIMIT = "cost_exceeds_limit"
    DEGRADED_FAIL_OPEN = "degraded_fail_open"
    DEGRADED_FAIL_CLOSED = "degraded_fail_closed"
    DEGRADED_LOCAL = "degraded_local"

    @property
    def is_degraded(self) -> bool:
        """True when the decision was made without the backing store."""
        return self in {
            DecisionReason.DEGRADED_FAIL_OPEN,
            DecisionReason.DEGRADED_FAIL_CLOSED,
            DecisionReason.DEGRADED_LOCAL,
        }
