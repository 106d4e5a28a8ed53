"""LoggerProtocol definition for structured logging.

Backend-agnostic port for structured logs. Messages are constant strings;
variable data goes into key-value context.

Log Levels:
    - DEBUG: Admitted checks, per-call store details
    - INFO: Recovery from degraded mode, resets
    - WARNING: Store failures, degraded decisions, cost above limit
    - ERROR: Operation failed, system continues
    - CRITICAL: System-wide failure

Usage:
    from ratekeeper.core.container import get_logger

    logger = get_logger()
    logger.warning("Backing store unavailable", key=key, error_code=err.code.value)

    scoped = logger.bind(component="composer")
    scoped.debug("Rule passed", rule=rule.label)
"""

from __future__ import annotations

from typing import Any, Protocol


class LoggerProtocol(Protocol):
    """Protocol for structured logging adapters."""

    def debug(self, message: str, /, **context: Any) -> None:
        """Log a debug-level message.

        Args:
            message: Human-readable message (avoid f-strings; use context).
            **context: Structured key-value context fields.
        """
        ...

    def info(self, message: str, /, **context: Any) -> None:
        """Log an info-level message."""
        ...

    def warning(self, message: str, /, **context: Any) -> None:
        """Log a warning-level message."""
        ...

    def error(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log an error-level message with optional exception details.

        Args:
            message: Human-readable message.
            error: Optional exception; adapters add error_type and
                error_message fields.
            **context: Structured key-value context fields.
        """
        ...

    def critical(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log a critical-level message."""
        ...

    def bind(self, **context: Any) -> LoggerProtocol:
        """Return new logger with permanently bound context.

        The original logger is unchanged.
        """
        ...
