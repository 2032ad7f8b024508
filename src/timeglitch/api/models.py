"""Pydantic request and response models for the Timeglitch API.

Models
------
GenerateRequest
    Payload for ``POST /api/generate``: year, theme and glitch slider value.
GeneratedImage
    One rendered landmark image in a successful response.
OverloadResponse
    Structured 503 body returned when an upstream model stays overloaded.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic.alias_generators import to_camel

# Finite int or float; bools and numeric strings are rejected.
FiniteNumber = Annotated[float, Field(strict=True, allow_inf_nan=False)]


class GenerateRequest(BaseModel):
    """Request body for the ``POST /api/generate`` endpoint.

    Attributes:
        year: Target year of the alternate timeline.
        theme: Theme name; unknown themes get generic guidance.
        glitch: Glitch slider value, nominally ``0``-``100``.
        seed: Optional seed for reproducible landmark selection.
    """

    model_config = ConfigDict(extra="ignore")

    year: FiniteNumber = Field(..., description="Target year, e.g. 2075.")
    theme: StrictStr = Field(..., description="Theme name, e.g. 'Tech Boom Buffalo'.")
    glitch: FiniteNumber = Field(..., description="Glitch slider value (0-100).")
    seed: int | None = Field(
        default=None,
        description="Optional landmark-selection seed.  None = random.",
    )


class GeneratedImage(BaseModel):
    """One landmark image, base64-encoded.

    Attributes:
        id: Landmark id (matches the world state's landmark plan).
        landmark: Landmark display name.
        mime_type: Image MIME type (``mimeType`` on the wire).
        base64: Base64-encoded image bytes.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    landmark: str
    mime_type: str
    base64: str


class OverloadResponse(BaseModel):
    """Body of the 503 overload escalation.

    Attributes:
        ok: Always ``False``.
        error_code: Always ``"MODEL_OVERLOADED"`` (``errorCode`` on the wire).
        phase: Which upstream call was overloaded.
        message: Human-readable, actionable explanation.
        retry_after_ms: Suggested client wait before retrying.
        detail: Raw upstream error, only in debug mode.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ok: Literal[False] = False
    error_code: Literal["MODEL_OVERLOADED"] = "MODEL_OVERLOADED"
    phase: Literal["text", "image", "unknown"]
    message: str
    retry_after_ms: int
    detail: str | None = None
