"""Sliding Window Counter admission algorithm.

Approximate, O(1) memory. Time is cut into windows aligned to multiples of
window_seconds. The previous window's count is weighted by how much of it
still overlaps the trailing window:

    overlap   = 1 - (now - curr_window_start) / window_seconds
    effective = prev_window_count * overlap + curr_window_count

A request is admitted if effective + cost <= limit.

Rollover happens once per boundary. Crossing exactly one boundary moves the
current count into prev; crossing two or more zeroes prev, because the
window directly before the new one saw no traffic.

Approximation bound:
    The estimate assumes the previous window's traffic was spread evenly.
    If it was bunched at the end of that window, a trailing window that
    straddles the boundary can admit more than `limit`. The overshoot is at
    most prev_window_count * (1 - overlap), i.e. strictly less than one
    window's worth of previously admitted traffic, and it shrinks to zero
    as traffic becomes uniform.

Example (limit=100, prev=80, 75% into the current window -> overlap 0.25):
    curr=30: effective = 80*0.25 + 30 = 50 -> admitted
    curr=75: effective = 95 -> cost 1 admitted (96), cost 6 denied (101)
"""

import math

from ratekeeper.algorithms.base import EPSILON, AdmissionStrategy
from ratekeeper.domain.enums import DecisionReason, RateLimitAlgorithm
from ratekeeper.domain.value_objects import Decision, RateLimitRule, WindowCounterState


def _window_start(now: float, window_seconds: float) -> float:
    return math.floor(now / window_seconds) * window_seconds


class SlidingWindowCounterStrategy(AdmissionStrategy[WindowCounterState]):
    """Sliding window counter over WindowCounterState."""

    algorithm = RateLimitAlgorithm.SLIDING_WINDOW_COUNTER

    def initial_state(self, rule: RateLimitRule, now: float) -> WindowCounterState:
        return WindowCounterState(
            prev_window_count=0,
            curr_window_count=0,
            curr_window_start=_window_start(now, rule.window_seconds),
        )

    def decode(self, raw: str) -> WindowCounterState:
        return WindowCounterState.from_json(raw)

    def encode(self, state: WindowCounterState) -> str:
        return state.to_json()

    def roll(self, state: WindowCounterState, rule: RateLimitRule, now: float) -> WindowCounterState:
        """Advance the state to the window containing `now`."""
        window = rule.window_seconds
        since_start = now - state.curr_window_start
        if since_start < window:
            return state
        windows_crossed = math.floor(since_start / window)
        return WindowCounterState(
            prev_window_count=state.curr_window_count if windows_crossed == 1 else 0,
            curr_window_count=0,
            curr_window_start=_window_start(now, window),
        )

    def evaluate(
        self,
        state: WindowCounterState,
        rule: RateLimitRule,
        cost: int,
        now: float,
    ) -> tuple[WindowCounterState, Decision]:
        state = self.roll(state, rule, now)
        window = rule.window_seconds
        offset = min(window, max(0.0, now - state.curr_window_start))
        overlap = 1.0 - offset / window
        effective = state.prev_window_count * overlap + state.curr_window_count

        if effective + cost <= rule.limit + EPSILON:
            next_state = WindowCounterState(
                prev_window_count=state.prev_window_count,
                curr_window_count=state.curr_window_count + cost,
                curr_window_start=state.curr_window_start,
            )
            return (
                next_state,
                Decision(
                    allowed=True,
                    remaining=max(0, math.floor(rule.limit - effective - cost + EPSILON)),
                    retry_after_seconds=0.0,
                    limit=rule.limit,
                    reason=DecisionReason.ALLOWED,
                ),
            )

        return (
            state,
            Decision(
                allowed=False,
                remaining=max(0, math.floor(rule.limit - effective + EPSILON)),
                retry_after_seconds=self._retry_after(state, rule, cost, now),
                limit=rule.limit,
                reason=DecisionReason.RATE_EXCEEDED,
            ),
        )

    @staticmethod
    def _retry_after(
        state: WindowCounterState,
        rule: RateLimitRule,
        cost: int,
        now: float,
    ) -> float:
        """Seconds until the estimate leaves room for `cost`, absent new traffic."""
        window = rule.window_seconds
        prev = state.prev_window_count
        curr = state.curr_window_count

        if curr + cost <= rule.limit and prev > 0:
            # Wait for the previous window's weight to decay enough.
            needed_overlap = (rule.limit - curr - cost) / prev
            at = state.curr_window_start + window * (1.0 - needed_overlap)
        else:
            # Current window alone is too full; wait past the next rollover,
            # where curr becomes prev and starts decaying.
            free_share = (rule.limit - cost) / curr if curr > 0 else 1.0
            at = state.curr_window_start + window + window * (1.0 - free_share)
        return max(0.0, at - now)
