"""Gemini image-generation client.

Each call is retried like the text call (with its own budget) and the whole
retrying call is additionally bounded by a wall-clock timeout.  The timeout
uses :func:`asyncio.wait_for`, which cancels the in-flight request task
when the budget runs out; results are request-local, so an abandoned call
cannot affect any other request.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Any

from google import genai
from google.genai import types

from timeglitch.core.errors import ImageTimeoutError, NoImageReturnedError
from timeglitch.core.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)

TEXT_SNIPPET_LENGTH = 300


@dataclass(frozen=True)
class ImagePayload:
    """Inline image data returned by the model.

    Attributes:
        mime_type: e.g. ``"image/png"``.
        base64: Base64-encoded image bytes.
        text: Accompanying text part, if the model sent one.
    """

    mime_type: str
    base64: str
    text: str | None = None


def _response_parts(response: Any) -> list[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def extract_image(response: Any) -> ImagePayload:
    """Pick the first inline image part out of a ``generate_content`` response.

    Raises:
        NoImageReturnedError: No part carries ``image/*`` inline data.
    """
    parts = _response_parts(response)
    text = next((p.text for p in parts if isinstance(getattr(p, "text", None), str)), None)

    for part in parts:
        inline = getattr(part, "inline_data", None)
        mime_type = getattr(inline, "mime_type", None) or ""
        data = getattr(inline, "data", None)
        if inline is None or not mime_type.startswith("image/") or not data:
            continue
        # The SDK hands back raw bytes; older responses carry base64 text.
        encoded = base64.b64encode(data).decode("ascii") if isinstance(data, bytes) else str(data)
        return ImagePayload(mime_type=mime_type, base64=encoded, text=text)

    raise NoImageReturnedError(text[:TEXT_SNIPPET_LENGTH] if text else None)


class GeminiImageClient:
    """Render one image per prompt with the hosted image model.

    Attributes:
        model: Gemini image model name.
        policy: Retry budget for each call.
        timeout: Wall-clock seconds allowed for one call, retries included.
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gemini-2.5-flash-image",
        policy: RetryPolicy | None = None,
        timeout: float = 45.0,
        client: genai.Client | None = None,
    ) -> None:
        self.model = model
        self.policy = policy or RetryPolicy(attempts=3, base_delay=0.7, max_delay=3.0)
        self.timeout = timeout
        self._client = client if client is not None else genai.Client(api_key=api_key)

    async def generate(self, prompt: str) -> ImagePayload:
        """Send *prompt* and return the first inline image.

        Raises:
            NoImageReturnedError: The model answered without an image.
            TransientUpstreamError: Overload/rate limit/network failure persisted.
            UpstreamError: Any other upstream failure.
        """
        config = types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"])

        async def _call():
            return await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )

        response = await call_with_retry(_call, self.policy, label="image")
        return extract_image(response)

    async def generate_with_timeout(self, prompt: str, index: int) -> ImagePayload:
        """Like :meth:`generate`, bounded by :attr:`timeout` seconds.

        Args:
            prompt: Image prompt.
            index: Position of the image in the request, used in the error.

        Raises:
            ImageTimeoutError: The budget ran out before an image arrived.
        """
        try:
            return await asyncio.wait_for(self.generate(prompt), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Image %d exceeded its %.1fs budget", index, self.timeout)
            raise ImageTimeoutError(index, self.timeout) from exc
