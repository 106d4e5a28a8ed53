"""Configuration error.

The only error ever raised to callers. Invalid rules, keys and costs fail
fast at construction or resolution time and are never silently defaulted.
"""

from ratekeeper.core.enums import ErrorCode


class ConfigurationError(ValueError):
    """Invalid rule, key, cost or rule document.

    Inherits from ValueError so generic validation handlers keep working.

    Attributes:
        code: Machine-readable error code.
        field: Offending field name, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.INVALID_RULE,
        field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.field = field
