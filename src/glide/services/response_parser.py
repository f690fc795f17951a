from __future__ import annotations
import json
import re
from typing import Any

from glide.core.errors import ClassifiedError, ErrorKind

# Greedy: first '{' to last '}'
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*\n?([\s\S]*?)\n?\s*```\s*$", re.I)

PREVIEW_CHARS = 100


def extract_text(response: Any) -> str:
    """SDK responses expose `.text`; plain strings pass through."""
    if response is None:
        return ""
    if isinstance(response, str):
        return response
    return getattr(response, "text", None) or ""


def parse_json(text: str) -> Any:
    """
    Parse model output as JSON. Models sometimes wrap the object in
    prose or a markdown fence, so fall back to the outermost {...} span.
    """
    candidate = text.strip()
    fenced = _CODE_FENCE.match(candidate)
    if fenced:
        candidate = fenced.group(1)

    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    match = _JSON_OBJECT.search(candidate)
    if match:
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            pass

    raise ClassifiedError(
        ErrorKind.UNKNOWN,
        f"Model returned invalid JSON: {text[:PREVIEW_CHARS]}",
        retryable=False,
    )
