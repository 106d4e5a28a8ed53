"""Core enums package.

Usage:
    from ratekeeper.core.enums import Environment, ErrorCode, StoreBackend
"""

from ratekeeper.core.enums.environment import Environment
from ratekeeper.core.enums.error_code import ErrorCode
from ratekeeper.core.enums.store_backend import StoreBackend

__all__ = ["Environment", "ErrorCode", "StoreBackend"]
