"""Degraded-mode policies applied when the backing store is unreachable."""

from enum import Enum


class FallbackPolicy(str, Enum):
    """What a rule does while the shared store is failing.

    Attributes:
        FAIL_OPEN: Admit everything. Protects availability.
        FAIL_CLOSED: Reject everything. Protects the backend.
        LOCAL_APPROXIMATE: Enforce a process-local token bucket. Accuracy
            degrades with the number of gateway instances.
    """

    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"
    LOCAL_APPROXIMATE = "local_approximate"
