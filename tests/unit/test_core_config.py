"""
Unit tests for configuration management (flat Settings).

Tests cover:
- Default values
- Loading from RATEKEEPER_ environment variables
- Validation of durations, multipliers and log level
- Cached singleton behavior
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from ratekeeper.core.config import Settings, get_settings
from ratekeeper.core.enums import Environment, StoreBackend
from ratekeeper.domain.enums import CompositionMode


@pytest.mark.unit
class TestSettingsDefaults:
    """Test default configuration."""

    def test_defaults(self):
        """Test engine defaults when no environment is set."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        assert settings.environment == Environment.DEVELOPMENT
        assert settings.store_backend == StoreBackend.REDIS
        assert settings.store_timeout_ms == 5.0
        assert settings.store_timeout_seconds == 0.005
        assert settings.ttl_multiplier == 2.0
        assert settings.cas_max_attempts == 5
        assert settings.composition_mode == CompositionMode.SHORT_CIRCUIT
        assert settings.is_development is True


@pytest.mark.unit
class TestSettingsFromEnvironment:
    """Test loading from environment variables."""

    def test_prefixed_variables(self):
        """Test RATEKEEPER_ variables override defaults."""
        env = {
            "RATEKEEPER_ENVIRONMENT": "testing",
            "RATEKEEPER_STORE_BACKEND": "memory",
            "RATEKEEPER_STORE_TIMEOUT_MS": "20",
            "RATEKEEPER_COMPOSITION_MODE": "all_or_nothing",
            "RATEKEEPER_LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings()

        assert settings.is_testing is True
        assert settings.store_backend == StoreBackend.MEMORY
        assert settings.store_timeout_seconds == 0.02
        assert settings.composition_mode == CompositionMode.ALL_OR_NOTHING
        assert settings.log_level == "DEBUG"

    def test_get_settings_is_cached(self):
        """Test get_settings() returns the same instance."""
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


@pytest.mark.unit
class TestSettingsValidation:
    """Test Settings field validation."""

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("store_timeout_ms", 0),
            ("cas_backoff_base_ms", -1),
            ("rule_cache_ttl_seconds", 0),
            ("ttl_multiplier", 0.5),
            ("cas_max_attempts", 0),
            ("degraded_retry_after_seconds", -1),
            ("log_level", "LOUD"),
        ],
    )
    def test_invalid_values_rejected(self, field, value):
        """Test invalid tuning values fail at load time."""
        with pytest.raises(ValidationError):
            Settings(**{field: value})
