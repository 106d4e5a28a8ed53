"""Unit tests for rule documents and config resolvers."""

from unittest.mock import Mock

import pytest

from ratekeeper.config import DEFAULT_RULES, build_rules
from ratekeeper.core.enums import ErrorCode
from ratekeeper.domain.enums import FallbackPolicy, RateLimitAlgorithm
from ratekeeper.domain.errors import ConfigurationError
from ratekeeper.domain.value_objects import RateLimitRule
from ratekeeper.infrastructure.rate_limit import CachingConfigResolver, StaticConfigResolver


@pytest.mark.unit
class TestBuildRules:
    """Rule document validation."""

    def test_default_rules_are_valid(self):
        """Should build every default tier."""
        rules = build_rules(DEFAULT_RULES)

        assert set(rules) == {"free", "pro"}
        assert rules["pro"]["export"][0].algorithm == RateLimitAlgorithm.SLIDING_WINDOW_LOG
        assert rules["pro"]["export"][0].fallback_policy == FallbackPolicy.FAIL_CLOSED

    def test_string_enums_are_accepted(self):
        """Should parse enum values given as plain strings."""
        rules = build_rules(
            {"t": {"s": [{"limit": 5, "window_seconds": 60, "algorithm": "sliding_window_log"}]}}
        )

        assert rules["t"]["s"][0] == RateLimitRule(
            limit=5, window_seconds=60.0, algorithm=RateLimitAlgorithm.SLIDING_WINDOW_LOG
        )

    @pytest.mark.parametrize(
        ("entry", "field"),
        [
            ({"limit": 0, "window_seconds": 1}, "limit"),
            ({"window_seconds": 1}, "limit"),
            ({"limit": 5, "window_seconds": 1, "burst": 10}, "burst"),
            ({"limit": 5, "window_seconds": 1, "algorithm": "leaky_bucket"}, "algorithm"),
        ],
    )
    def test_invalid_entries_raise(self, entry, field):
        """Should raise ConfigurationError naming the offending field."""
        with pytest.raises(ConfigurationError, match=r"free/api\[0\]") as exc_info:
            build_rules({"free": {"api": [entry]}})

        assert exc_info.value.code == ErrorCode.INVALID_RULE
        assert exc_info.value.field == field

    def test_cross_field_validation_runs(self):
        """Should reject combinations only the domain rule knows about."""
        entry = {
            "limit": 10,
            "window_seconds": 1,
            "algorithm": "sliding_window_log",
            "shard_count": 2,
        }

        with pytest.raises(ConfigurationError, match="cannot be sharded"):
            build_rules({"free": {"api": [entry]}})


@pytest.mark.unit
class TestStaticConfigResolver:
    """Tier and scope lookup."""

    @pytest.fixture
    def resolver(self) -> StaticConfigResolver:
        return StaticConfigResolver.from_document(
            {
                "free": {"*": [{"limit": 5, "window_seconds": 1}]},
                "pro": {
                    "*": [{"limit": 50, "window_seconds": 1}],
                    "export": [{"limit": 2, "window_seconds": 60}],
                },
            },
            default_tier="free",
        )

    def test_exact_scope(self, resolver):
        """Should prefer the exact scope entry."""
        assert [r.limit for r in resolver.resolve("pro", "export")] == [2]

    def test_wildcard_scope(self, resolver):
        """Should use the tier's wildcard for other scopes."""
        assert [r.limit for r in resolver.resolve("pro", "search")] == [50]

    def test_unknown_tier_uses_default(self, resolver):
        """Should resolve unknown tiers through the default tier."""
        assert [r.limit for r in resolver.resolve("trial", "search")] == [5]

    def test_unknown_tier_without_default(self):
        """Should raise when no default tier is configured."""
        resolver = StaticConfigResolver({"free": {}})

        with pytest.raises(ConfigurationError) as exc_info:
            resolver.resolve("trial", "search")

        assert exc_info.value.code == ErrorCode.RULES_NOT_FOUND

    def test_no_matching_scope_is_unlimited(self):
        """Should return no rules when neither scope nor wildcard exist."""
        resolver = StaticConfigResolver({"free": {"search": []}})

        assert resolver.resolve("free", "upload") == []

    def test_default_tier_must_exist(self):
        """Should reject a default tier that has no rules."""
        with pytest.raises(ConfigurationError):
            StaticConfigResolver({"free": {}}, default_tier="basic")

    def test_returns_copies(self, resolver):
        """Should not let callers mutate the configured lists."""
        resolver.resolve("pro", "export").clear()

        assert len(resolver.resolve("pro", "export")) == 1


@pytest.mark.unit
class TestCachingConfigResolver:
    """TTL caching in front of another resolver."""

    def test_cached_until_ttl(self, clock):
        """Should reuse a resolution until the TTL elapses, then refresh."""
        inner = Mock()
        inner.resolve.return_value = [RateLimitRule(limit=5, window_seconds=1.0)]
        resolver = CachingConfigResolver(inner, ttl_seconds=30.0, clock=clock)

        resolver.resolve("free", "api")
        clock.advance(29.0)
        resolver.resolve("free", "api")
        assert inner.resolve.call_count == 1

        clock.advance(1.0)
        resolver.resolve("free", "api")
        assert inner.resolve.call_count == 2

    def test_keys_by_tier_and_scope(self, clock):
        """Should cache each (tier, scope) pair separately."""
        inner = Mock()
        inner.resolve.return_value = []
        resolver = CachingConfigResolver(inner, ttl_seconds=30.0, clock=clock)

        resolver.resolve("free", "a")
        resolver.resolve("free", "b")
        resolver.resolve("pro", "a")

        assert inner.resolve.call_count == 3

    def test_invalidate(self, clock):
        """Should drop cached resolutions on invalidate()."""
        inner = Mock()
        inner.resolve.return_value = []
        resolver = CachingConfigResolver(inner, ttl_seconds=30.0, clock=clock)

        resolver.resolve("free", "a")
        resolver.invalidate()
        resolver.resolve("free", "a")

        assert inner.resolve.call_count == 2

    def test_errors_are_not_cached(self, clock):
        """Should re-ask the source after a failed resolution."""
        inner = Mock()
        inner.resolve.side_effect = [ConfigurationError("broken"), []]
        resolver = CachingConfigResolver(inner, ttl_seconds=30.0, clock=clock)

        with pytest.raises(ConfigurationError):
            resolver.resolve("free", "a")

        assert resolver.resolve("free", "a") == []

    def test_expired_resolutions_are_swept(self, clock):
        """Should not grow without bound when callers send many distinct scopes."""
        inner = Mock()
        inner.resolve.return_value = [RateLimitRule(limit=5, window_seconds=1.0)]
        resolver = CachingConfigResolver(inner, ttl_seconds=30.0, clock=clock)

        for i in range(500):
            resolver.resolve("free", f"scope-{i}")
        assert resolver.cached_count() == 500

        clock.advance(30.0)
        resolver.resolve("free", "fresh")

        assert resolver.cached_count() == 1

    def test_sweep_keeps_live_resolutions(self, clock):
        """Should only drop entries whose TTL has passed."""
        inner = Mock()
        inner.resolve.return_value = []
        resolver = CachingConfigResolver(inner, ttl_seconds=30.0, clock=clock)

        resolver.resolve("free", "old")
        clock.advance(20.0)
        resolver.resolve("free", "recent")
        clock.advance(10.0)
        resolver.resolve("free", "fresh")
        resolver.resolve("free", "recent")

        assert resolver.cached_count() == 2
        assert inner.resolve.call_count == 3
