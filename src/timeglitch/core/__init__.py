"""Core generation pipeline.

This package holds everything between an accepted request and the hosted
Gemini models:

- **Configuration** (config.py): Pydantic Settings, ``TIMEGLITCH_`` prefix.
- **Landmark catalog** (landmarks.py): fixed Buffalo locations and seeded
  random selection.
- **Glitch classifier** (glitch.py): slider value to minor/unstable/chaotic.
- **Prompt builders** (world_prompt.py, image_prompt.py): pure functions
  producing the world-state instruction and the per-landmark image prompts.
- **Extraction and validation** (json_extract.py, world_schema.py): JSON
  slice, decode, structural invariants, typed world state.
- **Upstream clients** (text_client.py, image_client.py, retry.py): Gemini
  calls with shared retry/backoff and an image timeout.
- **Errors** (errors.py): exception hierarchy and transient classification.

Architecture Overview
---------------------
::

    catalog + classifier → world prompt → text client → extract/validate
        → image prompts → image client (×3, sequential)

The API layer (:mod:`timeglitch.api`) sequences these steps and converts
failures into HTTP responses.
"""

from timeglitch.core.config import TimeglitchConfig, config
from timeglitch.core.glitch import GlitchTier, glitch_tier_from_slider
from timeglitch.core.landmarks import LANDMARKS, Landmark, pick_random_landmarks

__all__ = [
    "GlitchTier",
    "LANDMARKS",
    "Landmark",
    "TimeglitchConfig",
    "config",
    "glitch_tier_from_slider",
    "pick_random_landmarks",
]
