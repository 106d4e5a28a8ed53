"""Unit tests for the bounded CAS retry loop."""

from unittest.mock import AsyncMock, patch

import pytest

from ratekeeper.core.enums import ErrorCode
from ratekeeper.core.result import Failure, Success
from ratekeeper.infrastructure.store import RetryPolicy, WriteConflict, run_with_retry


@pytest.mark.unit
class TestRetryPolicy:
    """Tests for backoff computation."""

    def test_backoff_is_bounded_by_exponential_ceiling(self) -> None:
        """Should draw delays in [0, base * 2**attempt]."""
        policy = RetryPolicy(max_attempts=5, base_delay=0.001, max_delay=1.0)

        for attempt in range(4):
            for _ in range(50):
                assert 0.0 <= policy.backoff(attempt) <= 0.001 * 2**attempt

    def test_backoff_is_capped(self) -> None:
        """Should never exceed max_delay."""
        policy = RetryPolicy(max_attempts=5, base_delay=0.01, max_delay=0.02)

        assert all(policy.backoff(10) <= 0.02 for _ in range(50))

    def test_backoff_uses_full_jitter(self) -> None:
        """Should draw uniformly from zero up to the ceiling."""
        policy = RetryPolicy(base_delay=0.004, max_delay=1.0)

        with patch("ratekeeper.infrastructure.store.retry.random.uniform") as uniform:
            uniform.return_value = 0.003
            assert policy.backoff(1) == 0.003

        uniform.assert_called_once_with(0.0, 0.008)

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_attempts": 0}, {"base_delay": -1.0}, {"max_delay": -1.0}],
    )
    def test_invalid_policy(self, kwargs) -> None:
        """Should reject unusable budgets."""
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)


@pytest.mark.unit
class TestRunWithRetry:
    """Tests for the retry loop."""

    async def test_first_attempt_commits(self) -> None:
        """Should return the committed value without sleeping."""
        attempt = AsyncMock(return_value="ok")

        result = await run_with_retry(attempt, RetryPolicy(), key="k")

        assert result == Success(value="ok")
        attempt.assert_awaited_once()

    async def test_conflicts_are_retried(self) -> None:
        """Should re-run the attempt after a lost race."""
        attempt = AsyncMock(side_effect=[WriteConflict("k"), WriteConflict("k"), "ok"])
        policy = RetryPolicy(max_attempts=3, base_delay=0.0, max_delay=0.0)

        result = await run_with_retry(attempt, policy, key="k")

        assert result == Success(value="ok")
        assert attempt.await_count == 3

    async def test_budget_exhausted(self) -> None:
        """Should give up with CONTENTION_EXCEEDED after max_attempts."""
        attempt = AsyncMock(side_effect=WriteConflict("k"))
        policy = RetryPolicy(max_attempts=4, base_delay=0.0, max_delay=0.0)

        result = await run_with_retry(attempt, policy, key="hot")

        assert isinstance(result, Failure)
        assert result.error.code == ErrorCode.CONTENTION_EXCEEDED
        assert result.error.details == {"key": "hot", "attempts": 4}
        assert attempt.await_count == 4

    async def test_other_exceptions_propagate(self) -> None:
        """Should not swallow non-conflict errors."""
        attempt = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await run_with_retry(attempt, RetryPolicy(), key="k")
