"""Persisted bucket state per algorithm.

Each state is a frozen dataclass with a JSON codec. Stores only ever see
the encoded string; decoding happens inside the pure transform so the
read-compute-write sequence stays atomic.

Encodings:
    TokenBucketState:   {"tokens": 7.5, "last_refill_at": 1700000000.25}
    WindowLogState:     {"entries": [[1700000000.1, 1], [1700000000.4, 3]]}
    WindowCounterState: {"prev": 80, "curr": 30, "start": 1700000000.0}

Decoding rejects NaN, infinities, negative counts and fractional weights with
StateDecodeError, which stores report as STATE_CORRUPTED.
"""

import json
import math
from dataclasses import dataclass
from typing import Any

from ratekeeper.domain.errors import StateDecodeError


def _load(raw: str) -> dict[str, Any]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise StateDecodeError(f"Invalid state encoding: {exc}") from exc
    if not isinstance(data, dict):
        raise StateDecodeError(f"State must be a JSON object, got {type(data).__name__}")
    return data


def _finite(value: Any, field: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise StateDecodeError(f"{field} must be finite, got {number!r}")
    return number


def _non_negative(value: float, field: str) -> float:
    if value < 0:
        raise StateDecodeError(f"{field} must not be negative, got {value!r}")
    return value


def _count(value: Any, field: str) -> int:
    if isinstance(value, float) and not value.is_integer():
        raise StateDecodeError(f"{field} must be a whole number, got {value!r}")
    return int(_non_negative(_finite(value, field), field))


@dataclass(frozen=True, slots=True, kw_only=True)
class TokenBucketState:
    """Token bucket state.

    Attributes:
        tokens: Tokens currently in the bucket, in [0, capacity].
        last_refill_at: Timestamp the tokens value was computed at.
    """

    tokens: float
    last_refill_at: float

    def to_json(self) -> str:
        return json.dumps({"tokens": self.tokens, "last_refill_at": self.last_refill_at})

    @classmethod
    def from_json(cls, raw: str) -> "TokenBucketState":
        data = _load(raw)
        try:
            return cls(
                tokens=_non_negative(_finite(data["tokens"], "tokens"), "tokens"),
                last_refill_at=_finite(data["last_refill_at"], "last_refill_at"),
            )
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise StateDecodeError(f"Invalid token bucket state: {exc}") from exc


@dataclass(frozen=True, slots=True, kw_only=True)
class WindowLogState:
    """Sliding window log state.

    Attributes:
        entries: (timestamp, weight) pairs, oldest first. One entry per
            admitted request; weight is the request's cost.
    """

    entries: tuple[tuple[float, int], ...] = ()

    @property
    def total(self) -> int:
        """Sum of weights currently in the log."""
        return sum(weight for _, weight in self.entries)

    def to_json(self) -> str:
        return json.dumps({"entries": [[ts, weight] for ts, weight in self.entries]})

    @classmethod
    def from_json(cls, raw: str) -> "WindowLogState":
        data = _load(raw)
        try:
            entries = tuple(
                (_finite(ts, "timestamp"), _count(weight, "weight"))
                for ts, weight in data["entries"]
            )
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise StateDecodeError(f"Invalid window log state: {exc}") from exc
        return cls(entries=entries)


@dataclass(frozen=True, slots=True, kw_only=True)
class WindowCounterState:
    """Sliding window counter state.

    Attributes:
        prev_window_count: Cost admitted in the window before the current one.
        curr_window_count: Cost admitted in the current window.
        curr_window_start: Aligned start of the current window.
    """

    prev_window_count: int
    curr_window_count: int
    curr_window_start: float

    def to_json(self) -> str:
        return json.dumps(
            {
                "prev": self.prev_window_count,
                "curr": self.curr_window_count,
                "start": self.curr_window_start,
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "WindowCounterState":
        data = _load(raw)
        try:
            return cls(
                prev_window_count=_count(data["prev"], "prev"),
                curr_window_count=_count(data["curr"], "curr"),
                curr_window_start=_finite(data["start"], "start"),
            )
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise StateDecodeError(f"Invalid window counter state: {exc}") from exc
