"""Timeglitch Buffalo: FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, the REST routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
- **Configuration** comes from :data:`~timeglitch.core.config.config`
  (environment variables and ``.env``).
- **Generation** is delegated to
  :class:`~timeglitch.api.orchestrator.TimelineOrchestrator`, created at
  startup and stored on ``app.state``.  The route only decodes the body and
  turns the orchestrator's outcome into a ``JSONResponse``.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/api/config``               Themes, glitch tiers, landmarks
GET       ``/api/generate``             Liveness check
POST      ``/api/generate``             Generate world state + 3 images
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    timeglitch

Direct invocation::

    python -m timeglitch.api.main
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from timeglitch import __version__
from timeglitch.api.orchestrator import TimelineOrchestrator
from timeglitch.core.config import config
from timeglitch.core.glitch import CHAOTIC_THRESHOLD, UNSTABLE_THRESHOLD, GlitchTier
from timeglitch.core.landmarks import LANDMARKS
from timeglitch.core.world_prompt import THEMES

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the orchestrator on startup.

    No upstream client is built here; a missing API key surfaces as a
    500 on the first generate request rather than a failed startup.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    app.state.orchestrator = TimelineOrchestrator(config)
    if not config.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; generate requests will fail.")
    logger.info("TimelineOrchestrator initialised (debug=%s).", config.debug)

    yield


app = FastAPI(
    title="Timeglitch Buffalo",
    description="Alternate-history Buffalo landmarks from a year, a theme and a glitch slider.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/api/config")
async def get_config() -> dict:
    """Return the options a front end needs to build its controls.

    Returns:
        Dictionary with ``version``, ``themes``, ``glitch_tiers`` (tier name
        and inclusive slider range) and ``landmarks`` (the fixed catalog).
    """
    bands = {
        GlitchTier.MINOR: (0, UNSTABLE_THRESHOLD - 1),
        GlitchTier.UNSTABLE: (UNSTABLE_THRESHOLD, CHAOTIC_THRESHOLD - 1),
        GlitchTier.CHAOTIC: (CHAOTIC_THRESHOLD, 100),
    }
    return {
        "version": __version__,
        "themes": list(THEMES),
        "glitch_tiers": [
            {"tier": tier.value, "min": low, "max": high} for tier, (low, high) in bands.items()
        ],
        "landmarks": [lm.to_dict() for lm in LANDMARKS],
    }


@app.get("/api/generate")
async def generate_alive() -> dict:
    """Liveness check for the generate route."""
    return {"ok": True, "message": "API route is alive"}


@app.post("/api/generate")
async def generate_timeline(request: Request) -> JSONResponse:
    """Generate a world state and three landmark images.

    The body is decoded here and validated by the orchestrator so that
    malformed input gets the same ``{"error": ...}`` shape as every other
    failure instead of FastAPI's default 422.

    Args:
        request: The raw request; body must be ``{year, theme, glitch}``.

    Returns:
        ``{ok, world, images}`` on success; ``{error}`` (400/500/502) or the
        overload payload (503, with ``Retry-After``) on failure.
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(status_code=400, content={"error": "Invalid input: body is not valid JSON"})

    orchestrator: TimelineOrchestrator = request.app.state.orchestrator
    outcome = await orchestrator.run(payload)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body, headers=outcome.headers)


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~timeglitch.core.config.config`
    (``TIMEGLITCH_SERVER_HOST``, ``TIMEGLITCH_SERVER_PORT``,
    ``TIMEGLITCH_LOG_LEVEL``).  Defaults to ``0.0.0.0:7860``.

    This function is registered as the ``timeglitch`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "timeglitch.api.main:app",
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level,
        reload=False,
    )


if __name__ == "__main__":
    main()
