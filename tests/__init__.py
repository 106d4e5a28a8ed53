"""Test suite for ratekeeper.

Test structure:
- unit/: Algorithms, domain values, engine and composition in isolation
  (InMemoryStore, fake clock)
- integration/: RedisStore against fakeredis
"""
