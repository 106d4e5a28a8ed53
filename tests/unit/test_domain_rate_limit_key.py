"""Unit tests for RateLimitKey value object."""

import pytest

from ratekeeper.core.enums import ErrorCode
from ratekeeper.domain.enums import RateLimitAlgorithm
from ratekeeper.domain.errors import ConfigurationError
from ratekeeper.domain.value_objects import RateLimitKey, RateLimitRule


@pytest.mark.unit
class TestRateLimitKey:
    """Tests for key validation and storage key rendering."""

    def test_storage_key_format(self) -> None:
        """Should render ratelimit:{algorithm}:{client}:{scope}."""
        key = RateLimitKey(client_identifier="client-42", scope="search")

        assert (
            key.storage_key(RateLimitAlgorithm.TOKEN_BUCKET)
            == "ratelimit:token_bucket:client-42:search"
        )

    def test_storage_key_with_shard(self) -> None:
        """Should append the shard index for sharded keys."""
        key = RateLimitKey(client_identifier="client-42", scope="search").with_shard(3)

        assert key.shard_index == 3
        assert (
            key.storage_key(RateLimitAlgorithm.SLIDING_WINDOW_COUNTER)
            == "ratelimit:sliding_window_counter:client-42:search:3"
        )

    def test_algorithms_never_share_storage(self) -> None:
        """Should give each algorithm its own storage key."""
        key = RateLimitKey(client_identifier="c", scope="s")

        rendered = {key.storage_key(algorithm) for algorithm in RateLimitAlgorithm}

        assert len(rendered) == len(RateLimitAlgorithm)

    def test_for_rule_scopes_key_to_rule(self) -> None:
        """Should suffix the scope with the rule label."""
        key = RateLimitKey(client_identifier="c", scope="search")
        burst = RateLimitRule(limit=10, window_seconds=1.0, name="burst")
        hourly = RateLimitRule(limit=1000, window_seconds=3600.0)

        assert key.for_rule(burst).scope == "search#burst"
        assert key.for_rule(hourly).scope == "search#1000/3600s"

    @pytest.mark.parametrize(
        ("client", "scope", "field"),
        [("", "search", "client_identifier"), ("c", "", "scope")],
    )
    def test_empty_parts_rejected(self, client: str, scope: str, field: str) -> None:
        """Should reject empty identifiers and scopes."""
        with pytest.raises(ConfigurationError) as exc_info:
            RateLimitKey(client_identifier=client, scope=scope)

        assert exc_info.value.code == ErrorCode.INVALID_KEY
        assert exc_info.value.field == field

    def test_negative_shard_rejected(self) -> None:
        """Should reject negative shard indexes."""
        with pytest.raises(ConfigurationError):
            RateLimitKey(client_identifier="c", scope="s", shard_index=-1)
