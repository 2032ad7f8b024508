"""Configuration management for the Timeglitch Buffalo generator.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the TIMEGLITCH_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (TIMEGLITCH_* prefix)
2. .env file in the project root
3. Default values defined in TimeglitchConfig

The upstream credential is the one exception to the prefix rule: it is read
from ``GEMINI_API_KEY`` (or ``TIMEGLITCH_GEMINI_API_KEY``).

Example .env file:
    GEMINI_API_KEY=...
    TIMEGLITCH_DEBUG=false
    TIMEGLITCH_IMAGE_TIMEOUT_SECONDS=45

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
The API key is optional at import time so the server can start without it;
the orchestrator rejects requests with a configuration error instead.

Usage Example
-------------
    from timeglitch.core.config import config

    print(config.text_model)
    print(config.text_retry_policy())
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from timeglitch.core.retry import RetryPolicy


class TimeglitchConfig(BaseSettings):
    """Main configuration for the Timeglitch generator.

    Attributes
    ----------
    Upstream credentials:
        gemini_api_key : str | None
            API key shared by the text and image models.

    Models:
        text_model : str
            Gemini model that writes the world-state JSON.
        text_temperature : float
            Sampling temperature for the world-state call.
        image_model : str
            Gemini model that renders the landmark images.

    Retry and timeout budgets:
        text_retry_attempts, text_retry_base_seconds, text_retry_max_seconds
        image_retry_attempts, image_retry_base_seconds, image_retry_max_seconds
        retry_jitter_seconds : float
            Upper bound of the random jitter added to every backoff delay.
        image_timeout_seconds : float
            Wall-clock budget for one (retrying) image call.

    Overload escalation:
        overload_retry_base_ms, overload_retry_jitter_ms
            Suggested client retry delay is base + uniform(0, jitter).

    Request shape:
        landmark_count : int
            Number of landmarks per request (always 3 in production).

    Server:
        server_host, server_port, log_level, debug
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TIMEGLITCH_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "TIMEGLITCH_GEMINI_API_KEY", "gemini_api_key"),
        description="API key for the hosted Gemini text and image models",
    )
    debug: bool = Field(
        default=False,
        description="Include prompts and raw diagnostics in API responses",
    )

    text_model: str = Field(default="gemini-2.5-flash")
    text_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    image_model: str = Field(default="gemini-2.5-flash-image")

    text_retry_attempts: int = Field(default=3, ge=1, le=10)
    text_retry_base_seconds: float = Field(default=0.45, ge=0.0)
    text_retry_max_seconds: float = Field(default=2.2, ge=0.0)

    image_retry_attempts: int = Field(default=3, ge=1, le=10)
    image_retry_base_seconds: float = Field(default=0.7, ge=0.0)
    image_retry_max_seconds: float = Field(default=3.0, ge=0.0)

    retry_jitter_seconds: float = Field(default=0.25, ge=0.0)
    image_timeout_seconds: float = Field(
        default=45.0,
        gt=0.0,
        description="Hard wall-clock limit for one image call, retries included",
    )

    overload_retry_base_ms: int = Field(default=6500, ge=0)
    overload_retry_jitter_ms: int = Field(default=4000, ge=0)

    landmark_count: int = Field(default=3, ge=3, le=8)

    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=7860, ge=1024, le=65535)
    log_level: Literal["debug", "info", "warning", "error"] = Field(default="info")

    def text_retry_policy(self) -> RetryPolicy:
        """Retry budget for the world-state call."""
        return RetryPolicy(
            attempts=self.text_retry_attempts,
            base_delay=self.text_retry_base_seconds,
            max_delay=self.text_retry_max_seconds,
            jitter=self.retry_jitter_seconds,
        )

    def image_retry_policy(self) -> RetryPolicy:
        """Retry budget for each image call."""
        return RetryPolicy(
            attempts=self.image_retry_attempts,
            base_delay=self.image_retry_base_seconds,
            max_delay=self.image_retry_max_seconds,
            jitter=self.retry_jitter_seconds,
        )


# Global configuration instance, loaded from the environment and .env file.
config = TimeglitchConfig()
