"""Shared pytest fixtures for Timeglitch tests.

No test touches the network: the Gemini SDK client is replaced by
:class:`FakeGenaiClient`, and the orchestrator-level clients by
:class:`FakeTextClient` / :class:`FakeImageClient`.
"""

from __future__ import annotations

import asyncio
import json
import random
import re
from collections.abc import Callable, Generator
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient

from timeglitch.api.orchestrator import TimelineOrchestrator
from timeglitch.core.config import TimeglitchConfig
from timeglitch.core.image_client import ImagePayload

_ID_PATTERN = re.compile(r"^- id: (\S+)$", re.MULTILINE)


# ---------------------------------------------------------------------------
# World-state builders.
# ---------------------------------------------------------------------------


def make_world_dict(ids: list[str], *, anchors: int = 3, **overrides: Any) -> dict[str, Any]:
    """Build a conformant world-state dict for the given landmark ids."""
    world: dict[str, Any] = {
        "year": 2075,
        "theme": "Tech Boom Buffalo",
        "glitch": "unstable",
        "timelineName": "Silicon Snowbelt",
        "globalStyle": {
            "realism": "photorealistic",
            "lighting": "overcast winter daylight",
            "palette": "cool neutrals with rust accents",
            "camera": "street-level wide lens",
            "mood": "optimistic but unstable",
        },
        "motifs": ["rooftop solar", "heated sidewalks", "delivery robots"],
        "glitchSignature": ["chromatic fringing", "ghosted pedestrians"],
        "glitchNotes": "Reality hiccups near the lake.",
        "landmarks": [
            {
                "id": landmark_id,
                "name": f"Landmark {landmark_id}",
                "buffaloAnchors": [f"anchor {n}" for n in range(anchors)],
                "mustKeep": ["silhouette", "materials"],
                "changes": ["new plaza", "more trees", "light rail stop"],
                "cameraHint": f"from near {landmark_id}",
            }
            for landmark_id in ids
        ],
    }
    world.update(overrides)
    return world


def ids_from_prompt(prompt: str) -> list[str]:
    """Recover the landmark ids listed in a world prompt."""
    return _ID_PATTERN.findall(prompt)


# ---------------------------------------------------------------------------
# Fake Gemini SDK client.
# ---------------------------------------------------------------------------


class FakeModels:
    """Stand-in for ``client.aio.models`` that replays scripted results.

    Each scripted item is either a response object, an exception to raise,
    or a ``float`` meaning "sleep this long, then return the next item".
    """

    def __init__(self, script: list[Any]) -> None:
        self.script = list(script)
        self.calls: list[dict[str, Any]] = []

    async def generate_content(self, *, model: str, contents: str, config: Any) -> Any:
        self.calls.append({"model": model, "contents": contents, "config": config})
        item = self.script.pop(0)
        if isinstance(item, float):
            await asyncio.sleep(item)
            item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class FakeGenaiClient:
    def __init__(self, script: list[Any]) -> None:
        self.models = FakeModels(script)
        self.aio = SimpleNamespace(models=self.models)


def text_response(text: str | None) -> SimpleNamespace:
    return SimpleNamespace(text=text)


def image_response(
    data: bytes | str | None = b"\x89PNG fake",
    mime_type: str = "image/png",
    text: str | None = None,
) -> SimpleNamespace:
    parts = []
    if text is not None:
        parts.append(SimpleNamespace(text=text, inline_data=None))
    if data is not None:
        parts.append(
            SimpleNamespace(text=None, inline_data=SimpleNamespace(mime_type=mime_type, data=data))
        )
    content = SimpleNamespace(parts=parts)
    return SimpleNamespace(candidates=[SimpleNamespace(content=content)])


# ---------------------------------------------------------------------------
# Fake orchestrator-level clients.
# ---------------------------------------------------------------------------


class FakeTextClient:
    """Answers with a world state for whatever ids the prompt lists."""

    def __init__(self, respond: Callable[[str], str] | None = None, error: Exception | None = None):
        self.respond = respond or (lambda prompt: json.dumps(make_world_dict(ids_from_prompt(prompt))))
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.respond(prompt)


class FakeImageClient:
    """Returns a tiny payload per call; optionally fails at one index."""

    def __init__(self, fail_at: int | None = None, error: Exception | None = None):
        self.fail_at = fail_at
        self.error = error
        self.calls: list[tuple[int, str]] = []

    async def generate_with_timeout(self, prompt: str, index: int) -> ImagePayload:
        self.calls.append((index, prompt))
        if index == self.fail_at and self.error is not None:
            raise self.error
        return ImagePayload(mime_type="image/png", base64=f"aW1hZ2U{index}")


# ---------------------------------------------------------------------------
# Fixtures.
# ---------------------------------------------------------------------------


@pytest.fixture
def test_config() -> TimeglitchConfig:
    """Configuration with a dummy key and zero retry delays.

    Returns:
        TimeglitchConfig instance for testing
    """
    return TimeglitchConfig(
        _env_file=None,
        gemini_api_key="test-key",
        debug=False,
        text_retry_base_seconds=0.0,
        text_retry_max_seconds=0.0,
        image_retry_base_seconds=0.0,
        image_retry_max_seconds=0.0,
        retry_jitter_seconds=0.0,
        image_timeout_seconds=1.0,
    )


@pytest.fixture
def world_dict() -> dict[str, Any]:
    """A conformant three-landmark world state."""
    return make_world_dict(["canalside", "cityhall", "keybank"])


@pytest.fixture
def fake_text_client() -> FakeTextClient:
    return FakeTextClient()


@pytest.fixture
def fake_image_client() -> FakeImageClient:
    return FakeImageClient()


@pytest.fixture
def orchestrator(
    test_config: TimeglitchConfig,
    fake_text_client: FakeTextClient,
    fake_image_client: FakeImageClient,
) -> TimelineOrchestrator:
    return TimelineOrchestrator(
        test_config,
        text_client=fake_text_client,
        image_client=fake_image_client,
        rng=random.Random(0),
    )


@pytest.fixture
def test_client(orchestrator: TimelineOrchestrator) -> Generator[TestClient, None, None]:
    """FastAPI TestClient whose orchestrator uses the fake clients.

    Yields:
        TestClient bound to the application
    """
    from timeglitch.api.main import app

    with TestClient(app) as client:
        app.state.orchestrator = orchestrator
        yield client


# ---------------------------------------------------------------------------
# Factory fixtures for the builders and fakes above.
# ---------------------------------------------------------------------------


@pytest.fixture
def make_world() -> Callable[..., dict[str, Any]]:
    """Builder for conformant world-state dicts: ``make_world(ids, anchors=3, **overrides)``."""
    return make_world_dict


@pytest.fixture
def prompt_ids() -> Callable[[str], list[str]]:
    """Parser for the landmark ids listed in a world prompt."""
    return ids_from_prompt


@pytest.fixture
def genai_client() -> type[FakeGenaiClient]:
    """Fake SDK client class: ``genai_client([response_or_exception, ...])``."""
    return FakeGenaiClient


@pytest.fixture
def text_reply() -> Callable[[str | None], SimpleNamespace]:
    return text_response


@pytest.fixture
def image_reply() -> Callable[..., SimpleNamespace]:
    return image_response


@pytest.fixture
def text_client_factory() -> type[FakeTextClient]:
    return FakeTextClient


@pytest.fixture
def image_client_factory() -> type[FakeImageClient]:
    return FakeImageClient
