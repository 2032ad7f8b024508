"""World-state prompt construction for the text model.

The prompt asks the text model for a single JSON object describing one
coherent alternate timeline for Buffalo, NY, with a plan for each selected
landmark.  It is assembled from:

- fixed hard requirements (JSON only, same landmark ids and order,
  photorealism, no readable text, grounded aesthetic);
- the user inputs (year, theme, glitch tier);
- a theme guardrail looked up by theme name (unknown themes get the
  generic entry);
- a glitch-tier guardrail describing how loud the distortion may be;
- the fixed facts of every selected landmark;
- the exact JSON shape to return.

The builder is pure: the same inputs always give the same string.

Usage
-----
::

    prompt = build_world_prompt(
        year=2075,
        theme="Tech Boom Buffalo",
        tier=GlitchTier.UNSTABLE,
        landmarks=pick_random_landmarks(3),
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from types import MappingProxyType

from timeglitch.core.glitch import GlitchTier
from timeglitch.core.landmarks import Landmark

# ---------------------------------------------------------------------------
# Theme guardrails.  Keys are the theme names offered to users.
# ---------------------------------------------------------------------------

THEMES: tuple[str, ...] = (
    "Climate-Adaptive Waterfront",
    "Industrial Revival",
    "Bills Dynasty City",
    "Retro-Futurism 1980s",
    "Tech Boom Buffalo",
    "Post-Snowpocalypse Survival",
    "Utopian Transit Era",
)

GENERIC_THEME_GUARDRAIL = (
    "Interpret the theme as plausible urban change: architecture, infrastructure, street life, "
    "signage-free storefronts, vegetation and weather. Stay grounded and avoid sci-fi or fantasy drift."
)

THEME_GUARDRAILS: MappingProxyType[str, str] = MappingProxyType(
    {
        "Climate-Adaptive Waterfront": (
            "Show resilience engineering: raised promenades, flood barriers, bioswales, wetland "
            "edges, storm-ready materials. Water levels may be higher but the scene is calm and "
            "livable; avoid disaster imagery and sci-fi debris."
        ),
        "Industrial Revival": (
            "Lean on Buffalo's grain-elevator and steel heritage: restored brick, active rail spurs, "
            "working cranes, modern manufacturing tucked into old shells. Keep it clean and "
            "prosperous; avoid dystopian smog or steampunk fantasy."
        ),
        "Bills Dynasty City": (
            "The city is swept up in football success: blue-and-red palette accents, crowds, "
            "banners without readable text, celebratory energy. Avoid team logos, jersey numbers "
            "and any legible wordmarks."
        ),
        "Retro-Futurism 1980s": (
            "Imagine the future as seen from the 1980s: chrome trims, neon tubes, angular "
            "mid-rise forms, pastel and magenta accents, boxy vehicles. Keep it photographic like "
            "period film stock; avoid cyberpunk drift, holograms and megastructures."
        ),
        "Tech Boom Buffalo": (
            "A prosperous tech economy: glass-and-timber infill, rooftop solar, delivery robots at "
            "street level, well-kept public space. Keep hardware realistic and near-future; avoid "
            "floating screens, flying cars and sci-fi skylines."
        ),
        "Post-Snowpocalypse Survival": (
            "Deep lake-effect snow has reshaped daily life: snow tunnels, plowed canyons, improvised "
            "shelters, warm window light. Hardship without horror; avoid zombies, ruins of other "
            "cities and fantasy ice structures."
        ),
        "Utopian Transit Era": (
            "Transit-first streets: light rail, protected bike lanes, pedestrian plazas, trees where "
            "parking used to be. Bright and optimistic but believable; avoid pods, maglev spectacle "
            "and sci-fi vehicles."
        ),
    }
)

# ---------------------------------------------------------------------------
# Glitch-tier guardrails.  Distortion is always a camera artifact, never a
# transformation of the physical scene.
# ---------------------------------------------------------------------------

GLITCH_GUARDRAILS: MappingProxyType[GlitchTier, str] = MappingProxyType(
    {
        GlitchTier.MINOR: (
            "Glitch is barely there: faint chromatic aberration at the edges, a hint of sensor "
            "noise, one subtle ghosted detail. Most viewers should not notice it at first glance."
        ),
        GlitchTier.UNSTABLE: (
            "Glitch is visible but controlled: noticeable chromatic aberration, ghosting or double "
            "exposure on moving elements, rolling-shutter skew, patches of sensor noise."
        ),
        GlitchTier.CHAOTIC: (
            "Glitch is strong and dramatic: heavy chromatic fringing, multiple ghost exposures, "
            "banding, datamosh-like smearing in parts of the frame. The photo must still read as "
            "a real camera capture."
        ),
    }
)

GLITCH_LIMITS = (
    "All glitch effects must look like real camera or sensor artifacts (chromatic aberration, "
    "ghosting, sensor noise, motion smear). No melting buildings, portals, magic, creatures or "
    "other fantastical transformations."
)

_HARD_REQUIREMENTS = """Hard requirements:
- Output MUST be valid JSON only. No markdown, no code fences, no commentary.
- The JSON must include plans for ALL provided landmarks (same order), matching their id values exactly.
- Keep landmarks recognizable. Use baseFacts to avoid drifting to other cities.
- The style must be photorealistic and grounded (no sci-fi fantasy).
- No readable text, signage, logos or watermarks anywhere in the described scenes."""

_JSON_SHAPE = """{
  "year": number,
  "theme": string,
  "glitch": "minor" | "unstable" | "chaotic",
  "timelineName": string,
  "globalStyle": {
    "realism": "photorealistic",
    "lighting": string,
    "palette": string,
    "camera": string,
    "mood": string
  },
  "motifs": [string, string, string],
  "glitchSignature": [string, string, string],
  "glitchNotes": string,
  "landmarks": [
    {
      "id": string,
      "name": string,
      "buffaloAnchors": [string, string, string],
      "mustKeep": [string, string],
      "changes": [string, string, string],
      "cameraHint": string
    }
  ]
}"""

_RULES = """Rules:
- motifs must be reusable across all landmarks (2-5 items).
- glitchSignature must describe visual distortions (2-5 items) that match the glitch tier.
- buffaloAnchors: 2-4 concrete Buffalo-specific background cues per landmark (e.g. Lake Erie horizon, grain elevators, Buffalo River).
- mustKeep: 2-4 short bullet strings that preserve identity.
- changes: 3-6 short bullet strings describing plausible future changes for that landmark under the theme + year.
- cameraHint should be short and different per landmark (e.g., "from waterfront promenade", "ground-level plaza looking up").
- Keep everything Buffalo-specific and geographically plausible."""


def theme_guardrail(theme: str) -> str:
    """Return the guardrail text for *theme*, or the generic one."""
    return THEME_GUARDRAILS.get(theme.strip(), GENERIC_THEME_GUARDRAIL)


def _landmark_block(landmarks: Sequence[Landmark]) -> str:
    return "\n".join(
        f"- id: {lm.id}\n  name: {lm.name}\n  baseFacts: {lm.base_facts}" for lm in landmarks
    )


def build_world_prompt(
    *,
    year: int,
    theme: str,
    tier: GlitchTier,
    landmarks: Sequence[Landmark],
) -> str:
    """Compile the world-state instruction for the text model.

    Args:
        year: Target year of the alternate timeline.
        theme: Theme name; unknown names fall back to generic guidance.
        tier: Glitch tier derived from the slider.
        landmarks: Selected landmarks, in the order the plans must follow.

    Returns:
        The prompt text with sections separated by blank lines.
    """
    sections = [
        'You are an assistant that generates a SINGLE JSON object describing a coherent '
        'alternate-timeline "world state" for Buffalo, NY.',
        _HARD_REQUIREMENTS,
        f"User inputs:\n- year: {year}\n- theme: {theme}\n- glitch: {tier.value}",
        f"Theme guardrails:\n- {theme_guardrail(theme)}",
        f"Glitch guardrails ({tier.value}):\n- {GLITCH_GUARDRAILS[tier]}\n- {GLITCH_LIMITS}",
        f"Landmarks (fixed facts):\n{_landmark_block(landmarks)}",
        f"Return JSON with this exact shape:\n\n{_JSON_SHAPE}",
        _RULES,
        "Now output JSON only.",
    ]
    return "\n\n".join(sections)
