"""Timeglitch Buffalo - alternate-history landmark images from hosted Gemini models."""

__version__ = "0.1.0"

from timeglitch.core.config import TimeglitchConfig, config

__all__ = [
    "TimeglitchConfig",
    "config",
]
