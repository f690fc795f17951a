# src/glide/prompts/builder.py
from __future__ import annotations
import re
from typing import Any, Dict, List, Mapping, Optional

# Rough estimate: 1 token ≈ 4 characters of English text
CHARS_PER_TOKEN = 4

TRUNCATION_NOTICE = "\n\n[Content truncated due to length…]"

_PLACEHOLDER = re.compile(r"\{\{([A-Z_][A-Z0-9_]*)\}\}")
_SENTENCE_END = ".!?"


class EmptyTemplateError(ValueError):
    pass


def substitute(template: str, variables: Mapping[str, Any]) -> str:
    """
    Replace every `{{KEY}}` marker with its value.
    - case-sensitive, literal match
    - unknown markers are left as-is
    - extra variables are ignored
    """
    if not template:
        raise EmptyTemplateError("Prompt template cannot be empty.")

    out = template
    for key, value in variables.items():
        out = out.replace("{{" + key + "}}", str(value))
    return out


def _last_sentence_boundary(text: str) -> int:
    """Index just after the last '.', '!' or '?', or -1."""
    for i in range(len(text) - 1, -1, -1):
        if text[i] in _SENTENCE_END:
            return i + 1
    return -1


def truncate(text: str, max_tokens: int) -> str:
    """
    Fit `text` into roughly `max_tokens` tokens, cutting at a sentence
    boundary when there is one and appending TRUNCATION_NOTICE.
    The result is never longer than max_tokens * CHARS_PER_TOKEN.
    """
    if max_tokens <= 0:
        raise ValueError("max_tokens must be a positive number.")

    max_chars = max_tokens * CHARS_PER_TOKEN
    if len(text) <= max_chars:
        return text

    available = max_chars - len(TRUNCATION_NOTICE)
    if available <= 0:
        # Budget smaller than the notice itself: the notice alone, clipped to fit
        return TRUNCATION_NOTICE.strip()[:max_chars]

    head = text[:available]
    cut = _last_sentence_boundary(head)
    if cut > 0:
        head = head[:cut]
    return head.rstrip() + TRUNCATION_NOTICE


def list_placeholders(template: str) -> List[str]:
    if not template:
        return []
    # dict keeps first-appearance order
    return list(dict.fromkeys(_PLACEHOLDER.findall(template)))


def build_prompt(
    template: str,
    variables: Dict[str, Any],
    *,
    context_key: Optional[str] = None,
    max_context_tokens: Optional[int] = None,
) -> str:
    """
    Substitute variables, first truncating the one named by `context_key`
    (usually the email body) so the prompt stays inside the input budget.
    """
    values = dict(variables)
    if context_key is not None and max_context_tokens is not None and context_key in values:
        values[context_key] = truncate(str(values[context_key]), max_context_tokens)
    return substitute(template, values)
