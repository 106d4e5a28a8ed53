"""Base error class for Result-based error flow.

DomainError is the base for errors that travel as data inside Failure
results. It does NOT inherit from Exception: store failures are returned,
never raised, so the hot path cannot crash the caller.

Usage:
    @dataclass(frozen=True, slots=True, kw_only=True)
    class MyError(DomainError):
        pass  # Inherits code, message, details
"""

from dataclasses import dataclass
from typing import Any

from ratekeeper.core.enums import ErrorCode


@dataclass(frozen=True, slots=True, kw_only=True)
class DomainError:
    """Base error carried in Failure results.

    Attributes:
        code: Machine-readable error code.
        message: Human-readable error message.
        details: Optional context for debugging (key, attempts, cause).
    """

    code: ErrorCode
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"
