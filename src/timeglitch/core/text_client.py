"""Gemini text-generation client for the world-state call."""

from __future__ import annotations

import logging

from google import genai
from google.genai import types

from timeglitch.core.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)


class GeminiTextClient:
    """Ask the hosted language model for JSON text, retrying transient failures.

    Attributes:
        model: Gemini model name.
        temperature: Sampling temperature.
        policy: Retry budget applied to each :meth:`generate` call.
    """

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gemini-2.5-flash",
        temperature: float = 0.7,
        policy: RetryPolicy | None = None,
        client: genai.Client | None = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.policy = policy or RetryPolicy(attempts=3, base_delay=0.45, max_delay=2.2)
        self._client = client if client is not None else genai.Client(api_key=api_key)

    async def generate(self, prompt: str) -> str:
        """Send *prompt* and return the raw response text.

        Raises:
            TransientUpstreamError: Overload/rate limit/network failure persisted.
            UpstreamError: Any other upstream failure.
        """
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            temperature=self.temperature,
        )

        async def _call():
            return await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )

        response = await call_with_retry(_call, self.policy, label="text")
        text = response.text or ""
        logger.debug("Text model returned %d characters", len(text))
        return text
