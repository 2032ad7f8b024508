"""Per-landmark image prompt construction.

One prompt is derived from the validated world state for each landmark plan.
Every prompt repeats the shared timeline framing and global style so the
three images read as one alternate timeline, then adds that landmark's
anchors, identity constraints, changes and camera hint, the glitch strength,
and a fixed block of framing rules and negative constraints.

Missing list fields default to empty and a missing camera hint defaults to
``"street-level view"``, so a partially filled world state never breaks
prompt construction.
"""

from __future__ import annotations

from collections.abc import Iterable
from types import MappingProxyType

from timeglitch.core.glitch import GlitchTier
from timeglitch.core.world_schema import WorldState

DEFAULT_CAMERA_HINT = "street-level view"

GLITCH_STRENGTH: MappingProxyType[str, str] = MappingProxyType(
    {
        GlitchTier.MINOR.value: "subtle, barely noticeable",
        GlitchTier.UNSTABLE.value: "visible but controlled",
        GlitchTier.CHAOTIC.value: "strong and dramatic (still photorealistic)",
    }
)

_FRAMING_RULES = """Framing & output rules (VERY IMPORTANT):
- Output ONE single image only.
- Full-bleed, edge-to-edge scene: the image MUST fill the entire canvas.
- NO borders of any kind (no black/white borders, no frames, no mats).
- NO letterboxing or pillarboxing (no black bars).
- NO vignette or heavy corner darkening.
- Do not depict a poster, print, phone screen, gallery display, or photo-within-a-photo."""

_HARD_RULES = """Hard rules:
- Keep the landmark clearly recognizable and Buffalo-specific.
- Grounded realism: no fantasy/sci-fi elements like flying cars.
- Avoid readable text/logos/watermarks.
- Output a single full-frame image with no borders/letterboxing."""

NEGATIVE_CONSTRAINTS: tuple[str, ...] = (
    "no text, no readable signage, no captions, no logos, no watermarks",
    "no borders, no frames, no matte, no mat board, no film frame, no poster layout",
    "no letterboxing, no pillarboxing, no black bars, no white bars, no embedded margins",
    "no vignette, no heavy corner shading, no dark rounded corners",
    "no picture-in-picture, no photo-within-a-photo, no mockup, no gallery framing",
    "no split-screen, no collage, no multiple panels",
    "no extreme wide cinematic bars",
    "no distorted anatomy (avoid extra limbs/faces if people appear)",
    "do not depict NYC/Chicago/Toronto skylines or iconic landmarks from other cities",
    "no flying cars, no sci-fi spacecraft, no fantasy architecture",
)


def _bullets(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def glitch_strength(glitch: str) -> str:
    """Adjective phrase for a tier value; unknown values read as chaotic."""
    return GLITCH_STRENGTH.get(glitch, GLITCH_STRENGTH[GlitchTier.CHAOTIC.value])


def build_image_prompt(world: WorldState, index: int) -> str:
    """Compile the image prompt for ``world.landmarks[index]``.

    Args:
        world: Validated world state.
        index: Position of the landmark plan to render.

    Returns:
        The prompt text.

    Raises:
        IndexError: If *index* is outside ``world.landmarks``.
    """
    plan = world.landmarks[index]
    style = world.global_style
    camera_hint = plan.camera_hint or DEFAULT_CAMERA_HINT

    sections = [
        f"Generate ONE photorealistic image of {plan.name or plan.id} in Buffalo, New York "
        f"in the year {world.year}.",
        "This image is part of the SAME alternate timeline:\n"
        f"Timeline name: {world.timeline_name}\n"
        f"Theme: {world.theme}",
        "Global style:\n"
        f"- Lighting: {style.lighting}\n"
        f"- Palette: {style.palette}\n"
        f"- Camera: {style.camera}\n"
        f"- Mood: {style.mood}",
        "Buffalo anchors (must include at least 2-3 as subtle background cues):\n"
        + _bullets(plan.buffalo_anchors),
        "Recurring motifs (include a few if relevant):\n" + _bullets(world.motifs),
        "Landmark identity constraints (must keep):\n" + _bullets(plan.must_keep),
        "Timeline changes for this landmark (apply plausibly):\n" + _bullets(plan.changes),
        f"Camera hint:\n- {camera_hint}",
        "Timeline glitch:\n"
        f"- Level: {world.glitch} ({glitch_strength(world.glitch)})\n"
        "- Visual glitch signature (use some, but keep realistic):\n"
        + _bullets(world.glitch_signature),
        _FRAMING_RULES,
        _HARD_RULES,
        "Negative prompts:\n" + _bullets(NEGATIVE_CONSTRAINTS),
    ]
    return "\n\n".join(sections)


def build_image_prompts(world: WorldState, count: int) -> list[str]:
    """Build prompts for the first *count* landmark plans, in order."""
    return [build_image_prompt(world, index) for index in range(count)]
