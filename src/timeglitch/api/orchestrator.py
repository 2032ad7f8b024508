"""Request orchestration for ``POST /api/generate``.

:class:`TimelineOrchestrator` runs one request through the pipeline and is
the only place where raw errors are turned into HTTP outcomes.

Stages
------
========================  ================================================
Stage                     Work
========================  ================================================
``validate-input``        Parse the body into :class:`GenerateRequest`
``select-landmarks``      Pick ``landmark_count`` catalog entries
``classify-glitch``       Slider value to :class:`GlitchTier`
``build-world-prompt``    :func:`build_world_prompt`
``call-text-model``       :meth:`GeminiTextClient.generate`
``extract-json``          Slice, decode and validate the world state
``build-image-prompts``   One prompt per landmark plan
``call-image-model``      Three image calls, strictly one after another
``assemble-response``     ``{ok, world, images}``
========================  ================================================

Failure Mapping
---------------
Any failure stops the request; nothing partial is returned.

- :class:`InvalidInputError` → 400
- :class:`ConfigurationError` → 500
- :class:`MalformedModelOutputError` → 502
- transient upstream failure or image timeout → 503 overload payload with
  ``retryAfterMs`` and a ``Retry-After`` header
- any other :class:`UpstreamError` (including no image returned) → 502
- anything else → 500 with the raw message
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import ValidationError

from timeglitch.api.models import GenerateRequest, GeneratedImage, OverloadResponse
from timeglitch.core.config import TimeglitchConfig
from timeglitch.core.errors import (
    ConfigurationError,
    ImageTimeoutError,
    InvalidInputError,
    MalformedModelOutputError,
    UpstreamError,
    WorldStateValidationError,
    is_transient_error,
)
from timeglitch.core.glitch import glitch_tier_from_slider
from timeglitch.core.image_client import GeminiImageClient
from timeglitch.core.image_prompt import build_image_prompts
from timeglitch.core.json_extract import parse_json_object
from timeglitch.core.landmarks import pick_random_landmarks
from timeglitch.core.text_client import GeminiTextClient
from timeglitch.core.world_prompt import build_world_prompt
from timeglitch.core.world_schema import validate_world_state

logger = logging.getLogger(__name__)

DETAIL_LENGTH = 500


class Stage(str, Enum):
    """Pipeline stages, in execution order."""

    VALIDATE_INPUT = "validate-input"
    SELECT_LANDMARKS = "select-landmarks"
    CLASSIFY_GLITCH = "classify-glitch"
    BUILD_WORLD_PROMPT = "build-world-prompt"
    CALL_TEXT_MODEL = "call-text-model"
    EXTRACT_JSON = "extract-json"
    BUILD_IMAGE_PROMPTS = "build-image-prompts"
    CALL_IMAGE_MODEL = "call-image-model"
    ASSEMBLE_RESPONSE = "assemble-response"


_PHASES = {
    Stage.CALL_TEXT_MODEL: "text",
    Stage.CALL_IMAGE_MODEL: "image",
}


@dataclass
class GenerationOutcome:
    """Terminal result of one request.

    Attributes:
        status_code: HTTP status to send.
        body: JSON-serialisable response body.
        headers: Extra response headers (``Retry-After`` on overload).
    """

    status_code: int
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "body"
        problems.append(f"{location}: {err['msg']}")
    return "Invalid input: " + "; ".join(problems)


class TimelineOrchestrator:
    """Sequence the generation pipeline for one request at a time.

    The orchestrator itself holds no per-request state; each :meth:`run`
    works on local values only, so one instance can serve concurrent
    requests.  The Gemini clients are built on first use so the server can
    start without an API key.

    Attributes:
        config: Application configuration.
    """

    def __init__(
        self,
        config: TimeglitchConfig,
        *,
        text_client: GeminiTextClient | None = None,
        image_client: GeminiImageClient | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self._text_client = text_client
        self._image_client = image_client
        self._rng = rng or random.Random()

    # -- Public interface ---------------------------------------------------

    async def run(self, payload: Any) -> GenerationOutcome:
        """Run the whole pipeline for a decoded request body.

        Args:
            payload: The decoded JSON body (any type; validated here).

        Returns:
            The success or failure outcome.  Never raises for pipeline errors.
        """
        stage = Stage.VALIDATE_INPUT
        raw_text: str | None = None
        debug: dict[str, Any] = {}

        try:
            request = self._validate_input(payload)
            text_client, image_client = self._clients()

            stage = Stage.SELECT_LANDMARKS
            landmarks = pick_random_landmarks(self.config.landmark_count, seed=request.seed)
            debug["landmarks"] = [lm.to_dict() for lm in landmarks]

            stage = Stage.CLASSIFY_GLITCH
            tier = glitch_tier_from_slider(request.glitch)
            year = int(request.year)

            stage = Stage.BUILD_WORLD_PROMPT
            world_prompt = build_world_prompt(
                year=year, theme=request.theme, tier=tier, landmarks=landmarks
            )
            debug["worldPrompt"] = world_prompt
            logger.info(
                "Generating timeline: year=%s theme=%r tier=%s landmarks=%s",
                year,
                request.theme,
                tier.value,
                [lm.id for lm in landmarks],
            )
            logger.debug("World prompt:\n%s", world_prompt)

            stage = Stage.CALL_TEXT_MODEL
            raw_text = await text_client.generate(world_prompt)

            stage = Stage.EXTRACT_JSON
            parsed = parse_json_object(raw_text)
            world = validate_world_state(parsed, expected_ids=[lm.id for lm in landmarks])
            # The request, not the model, is authoritative for the echoed inputs.
            world = world.model_copy(update={"year": year, "theme": request.theme, "glitch": tier.value})

            stage = Stage.BUILD_IMAGE_PROMPTS
            image_prompts = build_image_prompts(world, len(landmarks))
            debug["imagePrompts"] = image_prompts

            stage = Stage.CALL_IMAGE_MODEL
            images: list[GeneratedImage] = []
            for index, prompt in enumerate(image_prompts):
                plan = world.landmarks[index]
                logger.info("Rendering image %d/%d (%s)", index + 1, len(image_prompts), plan.id)
                image = await image_client.generate_with_timeout(prompt, index)
                images.append(
                    GeneratedImage(
                        id=plan.id,
                        landmark=plan.name or landmarks[index].name,
                        mime_type=image.mime_type,
                        base64=image.base64,
                    )
                )

            stage = Stage.ASSEMBLE_RESPONSE
            body: dict[str, Any] = {
                "ok": True,
                "world": world.to_wire(),
                "images": [img.model_dump(by_alias=True) for img in images],
            }
            if self.config.debug:
                body["debug"] = debug
            logger.info("Timeline %r complete", world.timeline_name)
            return GenerationOutcome(status_code=200, body=body)

        except Exception as exc:
            return self._failure(exc, stage, raw_text)

    # -- Stages -------------------------------------------------------------

    def _validate_input(self, payload: Any) -> GenerateRequest:
        if not isinstance(payload, dict):
            raise InvalidInputError("Invalid input: request body must be a JSON object")
        try:
            return GenerateRequest.model_validate(payload)
        except ValidationError as exc:
            raise InvalidInputError(_format_validation_error(exc)) from exc

    def _clients(self) -> tuple[GeminiTextClient, GeminiImageClient]:
        if self._text_client is None or self._image_client is None:
            api_key = self.config.gemini_api_key
            if not api_key:
                raise ConfigurationError("GEMINI_API_KEY is not set")
            if self._text_client is None:
                self._text_client = GeminiTextClient(
                    api_key,
                    model=self.config.text_model,
                    temperature=self.config.text_temperature,
                    policy=self.config.text_retry_policy(),
                )
            if self._image_client is None:
                self._image_client = GeminiImageClient(
                    api_key,
                    model=self.config.image_model,
                    policy=self.config.image_retry_policy(),
                    timeout=self.config.image_timeout_seconds,
                )
        return self._text_client, self._image_client

    # -- Failure classification ---------------------------------------------

    def retry_after_ms(self) -> int:
        """Suggested client retry delay: base plus bounded random jitter."""
        return self.config.overload_retry_base_ms + self._rng.randint(
            0, self.config.overload_retry_jitter_ms
        )

    def _failure(self, exc: Exception, stage: Stage, raw_text: str | None) -> GenerationOutcome:
        message = str(exc) or exc.__class__.__name__

        if isinstance(exc, InvalidInputError):
            logger.info("Rejected request: %s", message)
            return self._error(400, message)

        if isinstance(exc, ConfigurationError):
            logger.error("Configuration error: %s", message)
            return self._error(500, message)

        if isinstance(exc, MalformedModelOutputError):
            logger.warning("Malformed text model output at %s: %s", stage.value, message)
            if isinstance(exc, WorldStateValidationError):
                error = f"Model returned an invalid world state: {message}"
            else:
                error = f"Model did not return valid JSON: {message}"
            extra = {"raw": raw_text} if raw_text is not None else {}
            return self._error(502, error, stage=stage, **extra)

        if is_transient_error(exc):
            return self._overload(exc, stage)

        if isinstance(exc, UpstreamError):
            logger.error("Upstream failure at %s: %s", stage.value, message)
            return self._error(502, message, stage=stage)

        logger.exception("Unexpected failure at %s", stage.value)
        return self._error(500, message, stage=stage)

    def _overload(self, exc: Exception, stage: Stage) -> GenerationOutcome:
        phase = _PHASES.get(stage, "unknown")
        if isinstance(exc, ImageTimeoutError):
            message = (
                f"Image {exc.index + 1} took too long to render. "
                "The image model is probably busy; please try again shortly."
            )
        elif phase == "text":
            message = "The timeline model is overloaded right now. Please try again shortly."
        elif phase == "image":
            message = "The image model is overloaded right now. Please try again shortly."
        else:
            message = "The generative models are overloaded right now. Please try again shortly."

        retry_after = self.retry_after_ms()
        logger.warning("Overload during %s phase (%s); suggesting %d ms", phase, exc, retry_after)

        payload = OverloadResponse(
            phase=phase,
            message=message,
            retry_after_ms=retry_after,
            detail=str(exc)[:DETAIL_LENGTH] if self.config.debug else None,
        )
        return GenerationOutcome(
            status_code=503,
            body=payload.model_dump(by_alias=True, exclude_none=True),
            headers={"Retry-After": str(math.ceil(retry_after / 1000))},
        )

    def _error(
        self,
        status_code: int,
        message: str,
        *,
        stage: Stage | None = None,
        **diagnostics: Any,
    ) -> GenerationOutcome:
        body: dict[str, Any] = {"error": message}
        if self.config.debug and stage is not None:
            body["debug"] = {"stage": stage.value, **diagnostics}
        return GenerationOutcome(status_code=status_code, body=body)
