"""Recover a JSON object from a free-form model reply."""

from __future__ import annotations

import json
import re
from typing import Any

from repodiag.exceptions import EmptyReply, MalformedJSON

_JSON_FENCE_RE = re.compile(r"```json\s*(.*?)```", re.IGNORECASE | re.DOTALL)
_ANY_FENCE_RE = re.compile(r"```[\w+-]*\s*(.*?)```", re.DOTALL)

PREVIEW_CHARS = 200


def _fenced_interior(text: str) -> str | None:
    """Interior of the first json-tagged fence, else of the first fence."""
    match = _JSON_FENCE_RE.search(text) or _ANY_FENCE_RE.search(text)
    if match is None:
        return None
    return match.group(1).strip()


def extract_json(text: str | None) -> dict[str, Any]:
    """Locate and parse the JSON object in a reply.

    Uses the interior of a fenced code block when present (a ``json``
    tagged fence wins), then parses from the first ``{`` to the last ``}``
    of that slice, or the whole slice when either brace is missing.

    Raises:
        EmptyReply: If the text is empty, blank or None.
        MalformedJSON: If the candidate does not parse to a JSON object.
    """
    if text is None or (isinstance(text, str) and not text.strip()):
        msg = "Empty reply from language model"
        raise EmptyReply(msg)
    if not isinstance(text, str):
        raise MalformedJSON(
            f"Reply is a {type(text).__name__}, not text",
            preview=repr(text)[:PREVIEW_CHARS],
            length=len(repr(text)),
        )

    raw = _fenced_interior(text)
    if raw is None:
        raw = text

    start = raw.find("{")
    end = raw.rfind("}")
    candidate = raw[start : end + 1] if start >= 0 and end > start else raw

    try:
        value = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise MalformedJSON(
            f"Reply does not contain valid JSON: {e.msg} (line {e.lineno}, column {e.colno})",
            preview=text[:PREVIEW_CHARS],
            length=len(text),
        ) from e

    if not isinstance(value, dict):
        raise MalformedJSON(
            f"Reply JSON is a {type(value).__name__}, not an object",
            preview=text[:PREVIEW_CHARS],
            length=len(text),
        )
    return value
