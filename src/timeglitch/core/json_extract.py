"""Pull a JSON object out of free-form model output.

The text model is asked for JSON only, but it occasionally wraps the object
in conversational text ("Sure! {...} Hope this helps").  Extraction is a
best-effort slice from the first ``{`` to the last ``}``; it does not check
brace balance, so several top-level objects or stray braces in surrounding
prose give an undefined slice that :func:`parse_json_object` then rejects.
"""

from __future__ import annotations

import json
from typing import Any

from timeglitch.core.errors import MalformedModelOutputError, NoJsonFoundError


def extract_first_json_object(raw: str) -> str:
    """Return the substring from the first ``{`` to the last ``}`` inclusive.

    Raises:
        NoJsonFoundError: No ``{``, no ``}``, or the last ``}`` precedes the first ``{``.
    """
    first = raw.find("{")
    last = raw.rfind("}")
    if first == -1 or last == -1 or last < first:
        raise NoJsonFoundError()
    return raw[first : last + 1]


def parse_json_object(raw: str) -> dict[str, Any]:
    """Extract and decode the JSON object embedded in *raw*.

    Raises:
        NoJsonFoundError: See :func:`extract_first_json_object`.
        MalformedModelOutputError: The slice is not valid JSON or not an object.
    """
    candidate = extract_first_json_object(raw)
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise MalformedModelOutputError(f"Model output is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise MalformedModelOutputError("Model output JSON is not an object")
    return parsed
