"""Backing store error types.

Store failures flow as data inside Failure results. The engine never
propagates them; it degrades to the rule's fallback policy instead.

Usage:
    return Failure(error=StoreError(
        code=ErrorCode.CONTENTION_EXCEEDED,
        message="CAS retry budget exhausted",
        details={"key": key, "attempts": 5},
    ))
"""

from dataclasses import dataclass

from ratekeeper.core.errors import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class StoreError(DomainError):
    """Backing store call failed.

    Codes:
        STORE_UNAVAILABLE: Connection refused/lost.
        STORE_TIMEOUT: Call exceeded its timeout (treated as unavailable).
        CONTENTION_EXCEEDED: Optimistic CAS retry budget exhausted.
        STATE_CORRUPTED: Stored value could not be decoded.
    """

    pass  # Inherits all fields from DomainError


class StateDecodeError(Exception):
    """Raised inside a transform when a stored value cannot be decoded.

    Stores catch it and return StoreError(code=STATE_CORRUPTED).
    """
