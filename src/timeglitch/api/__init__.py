"""Timeglitch Buffalo: FastAPI REST API layer.

Modules
-------
main
    FastAPI application with the route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for API request and response bodies.
orchestrator
    Runs the generation pipeline for one request and maps failures to
    HTTP outcomes.
"""
