"""Sliding Window Log admission algorithm.

Exact: the log holds one (timestamp, weight) entry per admitted request in
the trailing window, so memory is proportional to admitted traffic.
Entries at least one window old are purged before counting; purged state is
written back even when the request is denied.

A denied request is told when enough of the oldest weight will have aged
out for its cost to fit. When a single entry suffices this is simply
oldest.timestamp + window_seconds - now.
"""

import bisect

from ratekeeper.algorithms.base import AdmissionStrategy
from ratekeeper.domain.enums import DecisionReason, RateLimitAlgorithm
from ratekeeper.domain.value_objects import Decision, RateLimitRule, WindowLogState


class SlidingWindowLogStrategy(AdmissionStrategy[WindowLogState]):
    """Sliding window log over WindowLogState."""

    algorithm = RateLimitAlgorithm.SLIDING_WINDOW_LOG

    def initial_state(self, rule: RateLimitRule, now: float) -> WindowLogState:
        return WindowLogState()

    def decode(self, raw: str) -> WindowLogState:
        return WindowLogState.from_json(raw)

    def encode(self, state: WindowLogState) -> str:
        return state.to_json()

    def evaluate(
        self,
        state: WindowLogState,
        rule: RateLimitRule,
        cost: int,
        now: float,
    ) -> tuple[WindowLogState, Decision]:
        cutoff = now - rule.window_seconds
        entries = [(ts, weight) for ts, weight in state.entries if ts > cutoff]
        used = sum(weight for _, weight in entries)

        if used + cost <= rule.limit:
            if entries and entries[-1][0] == now:
                ts, weight = entries[-1]
                entries[-1] = (ts, weight + cost)
            else:
                bisect.insort(entries, (now, cost), key=lambda entry: entry[0])
            return (
                WindowLogState(entries=tuple(entries)),
                Decision(
                    allowed=True,
                    remaining=rule.limit - used - cost,
                    retry_after_seconds=0.0,
                    limit=rule.limit,
                    reason=DecisionReason.ALLOWED,
                ),
            )

        return (
            WindowLogState(entries=tuple(entries)),
            Decision(
                allowed=False,
                remaining=max(0, rule.limit - used),
                retry_after_seconds=self._retry_after(entries, used, rule, cost, now),
                limit=rule.limit,
                reason=DecisionReason.RATE_EXCEEDED,
            ),
        )

    @staticmethod
    def _retry_after(
        entries: list[tuple[float, int]],
        used: int,
        rule: RateLimitRule,
        cost: int,
        now: float,
    ) -> float:
        """Seconds until the oldest entries free enough room for `cost`."""
        needed = used + cost - rule.limit
        freed = 0
        for ts, weight in entries:
            freed += weight
            if freed >= needed:
                return max(0.0, ts + rule.window_seconds - now)
        return rule.window_seconds
