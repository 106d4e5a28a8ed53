"""Abstract base class for admission algorithms.

Strategies are pure: given the previous state, a rule, a cost and a clock
reading they compute the next state and a Decision. They never do I/O. The
engine wraps a strategy into a StateTransform and hands it to the backing
store, which runs it atomically. Because transforms can be retried under
contention they must not have side effects.

Usage:
    strategy = get_strategy(rule.algorithm)
    transform = strategy.transform(rule, cost=1, now=now)
    result = await store.execute_atomic(key, transform, ttl_seconds=..., timeout_seconds=...)
"""

from abc import ABC, abstractmethod
from typing import ClassVar, Generic, TypeVar

from ratekeeper.domain.enums import RateLimitAlgorithm
from ratekeeper.domain.protocols import StateTransform
from ratekeeper.domain.value_objects import Decision, RateLimitRule

S = TypeVar("S")

# Absorbs float noise in refill/overlap arithmetic (e.g. 0.1 * 3).
EPSILON = 1e-9


class AdmissionStrategy(ABC, Generic[S]):
    """Pure admission algorithm over an encoded state of type S.

    Contract:
        1. initial_state() is the implicit state of a never-seen key
           (full bucket / empty window).
        2. evaluate() is pure and deterministic for its inputs.
        3. decode() raises StateDecodeError for values it cannot read.
        4. Callers guarantee 1 <= cost <= rule.limit.
    """

    algorithm: ClassVar[RateLimitAlgorithm]

    @abstractmethod
    def initial_state(self, rule: RateLimitRule, now: float) -> S:
        """State of a key seen for the first time."""
        ...

    @abstractmethod
    def decode(self, raw: str) -> S:
        """Decode stored state."""
        ...

    @abstractmethod
    def encode(self, state: S) -> str:
        """Encode state for storage."""
        ...

    @abstractmethod
    def evaluate(
        self,
        state: S,
        rule: RateLimitRule,
        cost: int,
        now: float,
    ) -> tuple[S, Decision]:
        """Apply one request to a state.

        Args:
            state: Current state.
            rule: Rule being enforced.
            cost: Cost units requested.
            now: Caller clock in epoch seconds.

        Returns:
            tuple[S, Decision]: Next state (persisted whether or not the
            request was admitted) and the decision.
        """
        ...

    def load(self, raw: str | None, rule: RateLimitRule, now: float) -> S:
        """Decode stored state, or build the initial state when absent."""
        if raw is None:
            return self.initial_state(rule, now)
        return self.decode(raw)

    def transform(
        self,
        rule: RateLimitRule,
        cost: int,
        now: float,
    ) -> StateTransform[Decision]:
        """Bind a request into a StateTransform for the backing store."""

        def apply(raw: str | None) -> tuple[str, Decision]:
            state = self.load(raw, rule, now)
            next_state, decision = self.evaluate(state, rule, cost, now)
            return self.encode(next_state), decision

        return apply

    def preview(
        self,
        raw: str | None,
        rule: RateLimitRule,
        cost: int,
        now: float,
    ) -> Decision:
        """Decision the request would get, without producing a write."""
        _, decision = self.evaluate(self.load(raw, rule, now), rule, cost, now)
        return decision
