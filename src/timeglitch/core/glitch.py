"""Glitch slider classification."""

from __future__ import annotations

from enum import Enum

# Lower bounds (inclusive) of the unstable and chaotic bands.
UNSTABLE_THRESHOLD = 34
CHAOTIC_THRESHOLD = 67


class GlitchTier(str, Enum):
    """Ordinal glitch severity, least to most severe."""

    MINOR = "minor"
    UNSTABLE = "unstable"
    CHAOTIC = "chaotic"

    @property
    def rank(self) -> int:
        return list(GlitchTier).index(self)

    # str ordering would be alphabetical; compare by severity instead.
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, GlitchTier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, GlitchTier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, GlitchTier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, GlitchTier):
            return NotImplemented
        return self.rank >= other.rank


def glitch_tier_from_slider(value: float) -> GlitchTier:
    """Map a slider value in ``[0, 100]`` to its tier.

    ``< 34`` is minor, ``< 67`` unstable, anything else chaotic.  The caller
    is responsible for rejecting non-finite input.
    """
    if value < UNSTABLE_THRESHOLD:
        return GlitchTier.MINOR
    if value < CHAOTIC_THRESHOLD:
        return GlitchTier.UNSTABLE
    return GlitchTier.CHAOTIC
