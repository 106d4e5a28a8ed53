"""Machine-readable error codes.

Error codes follow ENTITY_REASON naming. Only configuration errors are ever
raised to callers; store codes travel inside Failure results and end up as
degraded Decisions.
"""

from enum import Enum


class ErrorCode(Enum):
    """Machine-readable error codes."""

    # Configuration errors
    INVALID_RULE = "invalid_rule"
    INVALID_KEY = "invalid_key"
    INVALID_COST = "invalid_cost"
    RULES_NOT_FOUND = "rules_not_found"

    # Backing store errors
    STORE_UNAVAILABLE = "store_unavailable"
    STORE_TIMEOUT = "store_timeout"
    CONTENTION_EXCEEDED = "contention_exceeded"
    STATE_CORRUPTED = "state_corrupted"
