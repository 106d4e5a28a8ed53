"""Core errors package.

Usage:
    from ratekeeper.core.errors import DomainError
"""

from ratekeeper.core.errors.domain_error import DomainError

__all__ = ["DomainError"]
