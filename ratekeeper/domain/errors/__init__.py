"""Domain errors package.

Usage:
    from ratekeeper.domain.errors import ConfigurationError, StoreError
"""

from ratekeeper.domain.errors.configuration_error import ConfigurationError
from ratekeeper.domain.errors.store_error import StateDecodeError, StoreError

__all__ = ["ConfigurationError", "StateDecodeError", "StoreError"]
