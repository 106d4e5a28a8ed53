"""Unit tests for Composer (multi-rule composition)."""

from unittest.mock import Mock

import pytest

from ratekeeper.application import Composer, ShardRouter
from ratekeeper.core.enums import ErrorCode
from ratekeeper.domain.enums import (
    CompositionMode,
    DecisionReason,
    FallbackPolicy,
    RateLimitAlgorithm,
)
from ratekeeper.domain.errors import ConfigurationError
from ratekeeper.domain.value_objects import RateLimitKey, RateLimitRule
from ratekeeper.infrastructure.rate_limit import StaticConfigResolver

BURST = RateLimitRule(limit=3, window_seconds=1.0, name="burst")
MINUTE = RateLimitRule(
    limit=5,
    window_seconds=60.0,
    algorithm=RateLimitAlgorithm.SLIDING_WINDOW_COUNTER,
    name="minute",
)


@pytest.fixture
def composer(engine, logger) -> Composer:
    return Composer(limiter=ShardRouter(engine=engine), logger=logger)


@pytest.fixture
def atomic_composer(engine, logger) -> Composer:
    return Composer(
        limiter=ShardRouter(engine=engine),
        logger=logger,
        mode=CompositionMode.ALL_OR_NOTHING,
    )


async def _remaining(engine, rule: RateLimitRule, now: float) -> int:
    """Remaining a further 1-unit request on this rule would leave."""
    key = RateLimitKey(client_identifier="c", scope="api").for_rule(rule)
    return (await engine.peek(key, rule, 1, now=now)).remaining


@pytest.mark.unit
class TestComposerShortCircuit:
    """Default mode."""

    async def test_all_rules_pass(self, composer) -> None:
        """Should report the tightest remaining across rules."""
        decision = await composer.check("c", "api", [MINUTE, BURST], now=60.0)

        assert decision.allowed is True
        assert decision.remaining == 2
        assert decision.limit == 3
        assert decision.reason == DecisionReason.ALLOWED

    async def test_tightest_window_evaluated_first(self, composer, engine) -> None:
        """Should stop at the short-window denial before touching the long window."""
        for _ in range(3):
            await composer.check("c", "api", [MINUTE, BURST], now=60.0)

        denied = await composer.check("c", "api", [MINUTE, BURST], now=60.0)

        assert denied.allowed is False
        assert denied.limit == 3
        # The minute rule was charged only by the 3 admitted requests.
        assert await _remaining(engine, MINUTE, 60.0) == 1

    async def test_earlier_consumption_not_rolled_back(self, composer, engine) -> None:
        """Should keep quota consumed by rules that passed before a denial."""
        tight_long = RateLimitRule(limit=1, window_seconds=60.0, name="one-per-minute")
        rules = [BURST, tight_long]

        await composer.check("c", "api", rules, now=60.0)
        denied = await composer.check("c", "api", rules, now=60.0)

        assert denied.allowed is False
        assert await _remaining(engine, BURST, 60.0) == 0

    async def test_empty_rule_list_allows(self, composer) -> None:
        """Should treat no rules as unlimited."""
        decision = await composer.check("c", "api", [], now=0.0)

        assert decision.allowed is True
        assert decision.remaining == 0
        assert decision.limit == 0

    async def test_cost_is_weighted_per_rule(self, composer, engine) -> None:
        """Should charge cost * cost_per_request on each rule."""
        heavy = RateLimitRule(limit=10, window_seconds=1.0, cost_per_request=2, name="heavy")
        light = RateLimitRule(limit=10, window_seconds=60.0, name="light")

        decision = await composer.check("c", "api", [heavy, light], 3, now=0.0)

        assert decision.allowed is True
        assert await _remaining(engine, heavy, 0.0) == 3
        assert await _remaining(engine, light, 0.0) == 6

    @pytest.mark.parametrize("cost", [0, -2])
    async def test_invalid_cost_raises(self, composer, cost) -> None:
        """Should raise even when the rule list is empty."""
        with pytest.raises(ConfigurationError):
            await composer.check("c", "api", [], cost)

    async def test_rules_with_same_algorithm_keep_separate_state(self, composer) -> None:
        """Should not let two token bucket rules share one bucket."""
        per_second = RateLimitRule(limit=2, window_seconds=1.0, name="second")
        per_ten = RateLimitRule(limit=3, window_seconds=10.0, name="ten")

        results = [
            (await composer.check("c", "api", [per_ten, per_second], now=0.0)).allowed
            for _ in range(3)
        ]

        assert results == [True, True, False]

    async def test_degraded_reason_surfaces(self, composer, store) -> None:
        """Should report a degraded reason when any rule was degraded."""
        store.simulate_outage()

        decision = await composer.check("c", "api", [BURST, MINUTE], now=0.0)

        assert decision.allowed is True
        assert decision.reason == DecisionReason.DEGRADED_FAIL_OPEN


@pytest.mark.unit
class TestComposerAllOrNothing:
    """Peek-then-commit mode."""

    async def test_denial_consumes_nothing(self, atomic_composer, engine) -> None:
        """Should leave every rule untouched when any rule would deny."""
        tight_long = RateLimitRule(limit=1, window_seconds=60.0, name="one-per-minute")
        rules = [BURST, tight_long]

        await atomic_composer.check("c", "api", rules, now=60.0)
        denied = await atomic_composer.check("c", "api", rules, now=60.0)

        assert denied.allowed is False
        assert denied.limit == 1
        assert await _remaining(engine, BURST, 60.0) == 1

    async def test_admission_commits_every_rule(self, atomic_composer, engine) -> None:
        """Should consume from all rules when all would admit."""
        decision = await atomic_composer.check("c", "api", [BURST, MINUTE], now=60.0)

        assert decision.allowed is True
        assert await _remaining(engine, BURST, 60.0) == 1
        assert await _remaining(engine, MINUTE, 60.0) == 3

    async def test_fail_closed_rule_blocks_during_outage(self, atomic_composer, store) -> None:
        """Should deny up front when a fail-closed rule is degraded."""
        closed = RateLimitRule(
            limit=5,
            window_seconds=60.0,
            fallback_policy=FallbackPolicy.FAIL_CLOSED,
            name="closed",
        )
        store.simulate_outage()

        decision = await atomic_composer.check("c", "api", [BURST, closed], now=0.0)

        assert decision.allowed is False
        assert decision.reason == DecisionReason.DEGRADED_FAIL_CLOSED


@pytest.mark.unit
class TestComposerAdmit:
    """Rule resolution through a ConfigResolver."""

    async def test_admit_resolves_rules(self, engine, logger) -> None:
        """Should check the rules the resolver returns."""
        resolver = Mock()
        resolver.resolve.return_value = [BURST]
        composer = Composer(limiter=engine, logger=logger, resolver=resolver)

        decision = await composer.admit("free", "c", "api", now=0.0)

        resolver.resolve.assert_called_once_with("free", "api")
        assert decision.limit == 3

    async def test_admit_with_static_resolver(self, engine, logger) -> None:
        """Should fall back to the wildcard scope of the tier."""
        resolver = StaticConfigResolver({"free": {"*": [BURST]}})
        composer = Composer(limiter=engine, logger=logger, resolver=resolver)

        results = [(await composer.admit("free", "c", "search", now=0.0)).allowed for _ in range(4)]

        assert results == [True, True, True, False]

    async def test_admit_without_resolver(self, composer) -> None:
        """Should raise when no resolver was configured."""
        with pytest.raises(ConfigurationError) as exc_info:
            await composer.admit("free", "c", "api")

        assert exc_info.value.code == ErrorCode.RULES_NOT_FOUND
