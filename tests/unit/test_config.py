"""Tests for timeglitch.core.config: configuration management.

Tests cover:
- Default values for all configuration fields.
- Environment variable overrides via the TIMEGLITCH_ prefix.
- The bare GEMINI_API_KEY variable.
- Pydantic validation constraints.
- Retry policy construction.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from timeglitch.core.config import TimeglitchConfig
from timeglitch.core.retry import RetryPolicy


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("GEMINI_API_KEY", "TIMEGLITCH_GEMINI_API_KEY", "TIMEGLITCH_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestConfigDefaults:
    """Verify that TimeglitchConfig provides sensible defaults."""

    def test_api_key_optional(self, clean_env):
        cfg = TimeglitchConfig(_env_file=None)
        assert cfg.gemini_api_key is None

    def test_debug_off_by_default(self, clean_env):
        assert TimeglitchConfig(_env_file=None).debug is False

    def test_default_models(self, clean_env):
        cfg = TimeglitchConfig(_env_file=None)
        assert cfg.text_model == "gemini-2.5-flash"
        assert cfg.image_model == "gemini-2.5-flash-image"
        assert cfg.text_temperature == 0.7

    def test_default_budgets(self, clean_env):
        cfg = TimeglitchConfig(_env_file=None)
        assert cfg.image_timeout_seconds == 45.0
        assert cfg.landmark_count == 3
        assert cfg.overload_retry_base_ms == 6500
        assert cfg.overload_retry_jitter_ms == 4000

    def test_default_server(self, clean_env):
        cfg = TimeglitchConfig(_env_file=None)
        assert cfg.server_port == 7860
        assert cfg.log_level == "info"


class TestConfigEnvironment:
    def test_bare_gemini_api_key(self, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "from-env")
        assert TimeglitchConfig(_env_file=None).gemini_api_key == "from-env"

    def test_prefixed_api_key(self, clean_env):
        clean_env.setenv("TIMEGLITCH_GEMINI_API_KEY", "prefixed")
        assert TimeglitchConfig(_env_file=None).gemini_api_key == "prefixed"

    def test_debug_flag(self, clean_env):
        clean_env.setenv("TIMEGLITCH_DEBUG", "true")
        assert TimeglitchConfig(_env_file=None).debug is True

    def test_kwargs_override(self, clean_env):
        cfg = TimeglitchConfig(_env_file=None, gemini_api_key="kw", image_timeout_seconds=10)
        assert cfg.gemini_api_key == "kw"
        assert cfg.image_timeout_seconds == 10


class TestConfigValidation:
    def test_landmark_count_minimum(self, clean_env):
        with pytest.raises(ValidationError):
            TimeglitchConfig(_env_file=None, landmark_count=2)

    def test_timeout_must_be_positive(self, clean_env):
        with pytest.raises(ValidationError):
            TimeglitchConfig(_env_file=None, image_timeout_seconds=0)

    def test_port_range(self, clean_env):
        with pytest.raises(ValidationError):
            TimeglitchConfig(_env_file=None, server_port=80)


class TestRetryPolicies:
    def test_text_policy(self, test_config):
        policy = test_config.text_retry_policy()
        assert isinstance(policy, RetryPolicy)
        assert policy.attempts == test_config.text_retry_attempts

    def test_image_policy_defaults(self, clean_env):
        policy = TimeglitchConfig(_env_file=None).image_retry_policy()
        assert policy == RetryPolicy(attempts=3, base_delay=0.7, max_delay=3.0, jitter=0.25)
