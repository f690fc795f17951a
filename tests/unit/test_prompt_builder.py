# tests/unit/test_prompt_builder.py

from __future__ import annotations
import sys
from pathlib import Path
import pytest

# Make "src" importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from glide.prompts.builder import (
    CHARS_PER_TOKEN,
    TRUNCATION_NOTICE,
    EmptyTemplateError,
    build_prompt,
    list_placeholders,
    substitute,
    truncate,
)


# -------- substitute --------

def test_substitute_single_placeholder():
    assert substitute("Hello {{NAME}}!", {"NAME": "Alice"}) == "Hello Alice!"


def test_substitute_replaces_every_occurrence():
    out = substitute("{{X}} and {{X}} and {{X}}", {"X": "y"})
    assert out == "y and y and y"


def test_substitute_leaves_unknown_markers_and_ignores_extras():
    out = substitute("Hi {{NAME}}, {{UNKNOWN}}", {"NAME": "Bob", "EXTRA": "unused"})
    assert out == "Hi Bob, {{UNKNOWN}}"


def test_substitute_is_case_sensitive():
    assert substitute("{{name}} {{NAME}}", {"NAME": "A"}) == "{{name}} A"


def test_substitute_empty_value_and_multiline():
    tmpl = "Line 1: {{A}}\nLine 2: {{B}}"
    assert substitute(tmpl, {"A": "", "B": "two"}) == "Line 1: \nLine 2: two"


def test_substitute_empty_template_raises():
    with pytest.raises(EmptyTemplateError):
        substitute("", {"A": "x"})
    # still a ValueError for callers that catch broadly
    with pytest.raises(ValueError):
        substitute("", {})


# -------- truncate --------

def test_truncate_short_text_unchanged():
    text = "Short email. Nothing to cut."
    assert truncate(text, 100) is text


def test_truncate_exactly_at_limit_unchanged():
    text = "a" * (100 * CHARS_PER_TOKEN)
    assert truncate(text, 100) == text


def test_truncate_cuts_at_sentence_boundary():
    text = "First sentence here. Second one follows! Is this the third? " * 20
    out = truncate(text, 30)

    assert len(out) <= 30 * CHARS_PER_TOKEN
    assert out.endswith(TRUNCATION_NOTICE)
    body = out[: -len(TRUNCATION_NOTICE)]
    assert body[-1] in ".!?"
    assert text.startswith(body)


def test_truncate_without_sentence_boundary_uses_raw_budget():
    text = "a" * 1000
    out = truncate(text, 50)
    budget = 50 * CHARS_PER_TOKEN - len(TRUNCATION_NOTICE)
    assert out == "a" * budget + TRUNCATION_NOTICE
    assert len(out) == 50 * CHARS_PER_TOKEN


def test_truncate_budget_smaller_than_notice_still_fits():
    out = truncate("x" * 500, 3)
    assert len(out) <= 3 * CHARS_PER_TOKEN


@pytest.mark.parametrize("bad", [0, -1, -100])
@pytest.mark.parametrize("text", ["", "short", "x" * 10_000])
def test_truncate_rejects_non_positive_budget(text, bad):
    with pytest.raises(ValueError):
        truncate(text, bad)


def test_truncate_empty_text():
    assert truncate("", 10) == ""


# -------- list_placeholders --------

def test_list_placeholders_unique_in_first_appearance_order():
    tmpl = "{{B}} {{A}} {{B}} {{C_2}} {{A}}"
    assert list_placeholders(tmpl) == ["B", "A", "C_2"]


def test_list_placeholders_empty_cases():
    assert list_placeholders("") == []
    assert list_placeholders("No markers here {single} {{lower}}") == []


# -------- build_prompt --------

def test_build_prompt_truncates_only_context_variable():
    body = "Sentence number one. " * 200
    tmpl = "Summarise for {{NAME}}:\n---\n{{EMAIL_THREAD}}\n---"
    out = build_prompt(tmpl, {"NAME": "Dana", "EMAIL_THREAD": body},
                       context_key="EMAIL_THREAD", max_context_tokens=25)
    assert out.startswith("Summarise for Dana:")
    assert TRUNCATION_NOTICE in out
    assert len(out) < len(body)


def test_build_prompt_without_budget_is_plain_substitute():
    assert build_prompt("Hi {{N}}", {"N": "x"}) == "Hi x"
