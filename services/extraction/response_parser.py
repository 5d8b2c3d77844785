"""Helpers to pull structured records out of free-text model output."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional


class ParseError(ValueError):
    """Raised when a model response does not contain a usable JSON object."""


def _coerce_value(value: Any) -> str:
    """Render a parsed JSON value as the string stored in a record."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return json.dumps(value)
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


def parse_record(text: Optional[str]) -> Dict[str, str]:
    """Parse the object spanning the first '{' to the last '}' in the text.

    Commentary before or after the object is ignored. The span is greedy, so
    an unrelated brace pair after the intended object makes the parse fail.

    Args:
        text: Raw text returned by the model.

    Returns:
        The object's fields in their original order, with values as strings.

    Raises:
        ParseError: If no brace pair exists, the span is not valid JSON, or the
            parsed value is not an object.
    """
    if not text:
        raise ParseError("Response text is empty.")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise ParseError("Could not find a JSON object in the response.")

    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise ParseError(f"Could not parse JSON from response: {exc.msg}") from exc

    if not isinstance(parsed, dict):
        raise ParseError("Response JSON is not an object.")

    return {str(key): _coerce_value(value) for key, value in parsed.items()}


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def extract_text(response: Any) -> str:
    """Join every output_text entry of a Responses API result."""
    parts = []
    for item in _get(response, "output", None) or []:
        if _get(item, "type") != "message":
            continue
        for content in _get(item, "content", None) or []:
            if _get(content, "type") == "output_text":
                parts.append(_get(content, "text", "") or "")
    if parts:
        return "\n".join(parts)
    return _get(response, "output_text", "") or ""


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage if present."""
    usage = _get(response, "usage", None)
    return {
        "input_tokens": _get(usage, "input_tokens", None) if usage else None,
        "output_tokens": _get(usage, "output_tokens", None) if usage else None,
    }
