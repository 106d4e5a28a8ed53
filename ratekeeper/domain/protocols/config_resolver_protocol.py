"""ConfigResolver protocol (port).

Rules are owned by an external collaborator. The limiter never persists or
mutates them; it asks for the rules that apply to a client tier and scope
on every request, and the resolver decides how often it refreshes.
"""

from typing import Protocol

from ratekeeper.domain.value_objects import RateLimitRule


class ConfigResolverProtocol(Protocol):
    """Resolves the rules governing a (client tier, scope) pair."""

    def resolve(self, client_tier: str, scope: str) -> list[RateLimitRule]:
        """Return the rules for a client tier and scope.

        Args:
            client_tier: Caller's plan or tier (e.g., "free", "pro").
            scope: Endpoint or operation name.

        Returns:
            list[RateLimitRule]: Rules to enforce; empty means unlimited.

        Raises:
            ConfigurationError: If the stored rule configuration is invalid.
        """
        ...
