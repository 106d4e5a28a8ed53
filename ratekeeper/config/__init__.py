"""Rule configuration documents."""

from ratekeeper.config.rate_limits import DEFAULT_RULES, RuleConfig, build_rules

__all__ = ["DEFAULT_RULES", "RuleConfig", "build_rules"]
