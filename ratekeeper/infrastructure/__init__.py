"""Infrastructure layer - Adapters for external systems.

This layer contains implementations of domain protocols (ports):
- store/: Backing stores (Redis, in-memory) implementing BackingStoreProtocol
- logging/: structlog adapter implementing LoggerProtocol
- rate_limit/: Rule resolvers implementing ConfigResolverProtocol
"""
