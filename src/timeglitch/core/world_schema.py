"""World-state schema produced by the text model.

The world state arrives from an external model, so every field is treated
as untrusted: all of them are optional with an explicit default, ``null``
lists become empty lists, and unknown keys are kept but ignored.  Only the
structural invariants checked by :func:`validate_world_state` are required
before the object is used to build image prompts.

Wire format uses camelCase keys (``timelineName``, ``buffaloAnchors``);
Python code uses the snake_case attribute names.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from timeglitch.core.errors import WorldStateValidationError

MIN_LANDMARKS = 3
MIN_BUFFALO_ANCHORS = 2


def _string_list(value: Any) -> Any:
    """Coerce ``None`` to ``[]`` and drop non-string list items."""
    if value is None:
        return []
    if isinstance(value, list):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return value


def _text(value: Any) -> Any:
    """Coerce scalars to text; anything else becomes ``""``."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _year(value: Any) -> int | None:
    """Best-effort integer year; unparseable values become ``None``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


StringList = Annotated[list[str], BeforeValidator(_string_list)]
Text = Annotated[str, BeforeValidator(_text)]
Year = Annotated[int | None, BeforeValidator(_year)]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class GlobalStyle(_WireModel):
    """Style descriptors shared by all three images."""

    realism: Text = "photorealistic"
    lighting: Text = ""
    palette: Text = ""
    camera: Text = ""
    mood: Text = ""


class WorldLandmarkPlan(_WireModel):
    """Per-landmark plan: what stays recognisable and what changes."""

    id: str
    name: Text = ""
    buffalo_anchors: StringList = Field(default_factory=list)
    must_keep: StringList = Field(default_factory=list)
    changes: StringList = Field(default_factory=list)
    camera_hint: str | None = None


class WorldState(_WireModel):
    """A coherent alternate-timeline scenario for one request."""

    year: Year = None
    theme: Text = ""
    glitch: Text = ""
    timeline_name: Text = ""
    global_style: GlobalStyle = Field(default_factory=GlobalStyle)
    motifs: StringList = Field(default_factory=list)
    glitch_signature: StringList = Field(default_factory=list)
    glitch_notes: Text = ""
    landmarks: list[WorldLandmarkPlan] = Field(default_factory=list)

    @field_validator("global_style", mode="before")
    @classmethod
    def _default_style(cls, value: Any) -> Any:
        return {} if value is None else value

    def to_wire(self) -> dict[str, Any]:
        """Serialise with camelCase keys for the API response."""
        return self.model_dump(by_alias=True, mode="json")


def validate_world_state(
    parsed: Any,
    expected_ids: Sequence[str] | None = None,
    *,
    min_landmarks: int = MIN_LANDMARKS,
    min_anchors: int = MIN_BUFFALO_ANCHORS,
) -> WorldState:
    """Check structural invariants of a decoded world state and build the model.

    Checks, in order:

    1. ``parsed`` is a JSON object with a ``landmarks`` list of at least
       *min_landmarks* entries.
    2. Each of the first *min_landmarks* entries has a ``buffaloAnchors``
       list with at least *min_anchors* items.
    3. When *expected_ids* is given: the landmark ids equal it exactly (same
       values, same order, same count).

    Args:
        parsed: Output of :func:`~timeglitch.core.json_extract.parse_json_object`.
        expected_ids: Ids of the landmarks sent in the prompt, in order.
        min_landmarks: Minimum landmark count.
        min_anchors: Minimum anchors per checked landmark.

    Returns:
        The validated :class:`WorldState`.

    Raises:
        WorldStateValidationError: Naming the invariant that broke.
    """
    if not isinstance(parsed, Mapping):
        raise WorldStateValidationError("World state must be a JSON object")

    landmarks = parsed.get("landmarks")
    if not isinstance(landmarks, list):
        raise WorldStateValidationError("World state is missing the 'landmarks' list")
    if len(landmarks) < min_landmarks:
        raise WorldStateValidationError(
            f"World state must contain at least {min_landmarks} landmarks, got {len(landmarks)}"
        )

    for index, plan in enumerate(landmarks[:min_landmarks]):
        anchors = plan.get("buffaloAnchors") if isinstance(plan, Mapping) else None
        if not isinstance(anchors, list):
            raise WorldStateValidationError(f"landmarks[{index}] is missing 'buffaloAnchors'")
        usable = len(_string_list(anchors))
        if usable < min_anchors:
            raise WorldStateValidationError(
                f"landmarks[{index}].buffaloAnchors must contain at least {min_anchors} "
                f"text items, got {usable}"
            )

    try:
        world = WorldState.model_validate(parsed)
    except ValidationError as exc:
        raise WorldStateValidationError(f"World state has malformed fields: {exc}") from exc

    if expected_ids is not None:
        actual_ids = [plan.id for plan in world.landmarks]
        if actual_ids != list(expected_ids):
            raise WorldStateValidationError(
                f"World state landmark ids {actual_ids} do not match requested ids {list(expected_ids)}"
            )

    return world
