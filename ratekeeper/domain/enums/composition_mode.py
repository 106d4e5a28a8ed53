"""Multi-rule composition modes."""

from enum import Enum


class CompositionMode(str, Enum):
    """How the Composer combines several rules for one request.

    Attributes:
        SHORT_CIRCUIT: Check rules in order and stop at the first denial.
            Quota consumed by earlier rules stands. One store call per
            evaluated rule.
        ALL_OR_NOTHING: Evaluate every rule read-only first and consume only
            if all would pass. Twice the store calls; a concurrent request
            can still win the race between evaluation and commit.
    """

    SHORT_CIRCUIT = "short_circuit"
    ALL_OR_NOTHING = "all_or_nothing"
