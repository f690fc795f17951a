# tests/unit/test_gemini_adapter.py

from __future__ import annotations
import asyncio
import sys
import types
from pathlib import Path
import pytest

# Make "src" importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

# Import the module, then monkeypatch its genai client
import glide.providers.gemini_adapter as ga  # type: ignore
from glide.core.errors import ClassifiedError, ErrorKind
from glide.core.types import GenerationRequest


# -------- Fakes to replace the google-genai SDK client --------

class _FakeResponse:
    def __init__(self, text):
        self.text = text


class _FakeModels:
    def __init__(self, parent):
        self.parent = parent

    async def generate_content(self, *, model, contents, config):
        self.parent.calls.append({"model": model, "contents": contents, "config": config})
        return _FakeResponse(self.parent.reply)


class _FakeClient:
    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.calls = []
        self.reply = "hello world"
        self.aio = types.SimpleNamespace(models=_FakeModels(self))
        _FakeClient.instances.append(self)


@pytest.fixture
def fake_genai(monkeypatch):
    _FakeClient.instances.clear()
    monkeypatch.setattr(ga, "genai", types.SimpleNamespace(Client=_FakeClient), raising=True)
    return _FakeClient


def _req(**kw):
    base = dict(prompt="hi", model="gemini-test", temperature=1.0, max_output_tokens=2048, top_p=0.95, top_k=40)
    base.update(kw)
    return GenerationRequest(**base)


def test_empty_key_rejected_at_creation(fake_genai):
    for bad in ("", "   "):
        with pytest.raises(ClassifiedError) as ei:
            ga.GeminiAdapter(api_key=bad)
        assert ei.value.kind is ErrorKind.INVALID_API_KEY
    assert fake_genai.instances == []


def test_text_call_sends_sampling_config(fake_genai):
    adapter = ga.GeminiAdapter(api_key="k-test", model="gemini-test")
    out = asyncio.run(adapter.generate(_req()))
    assert out == "hello world"

    client = fake_genai.instances[0]
    assert client.kwargs["api_key"] == "k-test"
    call = client.calls[0]
    assert call["model"] == "gemini-test"
    assert call["contents"] == "hi"
    cfg = call["config"]
    assert cfg.temperature == 1.0
    assert cfg.max_output_tokens == 2048
    assert cfg.top_p == 0.95
    assert cfg.top_k == 40
    assert cfg.response_mime_type is None
    assert cfg.thinking_config is None


def test_structured_call_requests_json_and_disables_thinking(fake_genai):
    adapter = ga.GeminiAdapter(api_key="k-test")
    schema = {"type": "OBJECT", "properties": {"score": {"type": "INTEGER"}}}
    cfg = adapter.build_config(_req(structured=True, response_schema=schema,
                                    system_instruction="Only JSON.", top_p=None, top_k=None))
    assert cfg.response_mime_type == "application/json"
    assert cfg.response_schema is not None
    assert cfg.system_instruction == "Only JSON."
    assert cfg.thinking_config.thinking_budget == 0


def test_missing_text_becomes_empty_string(fake_genai):
    adapter = ga.GeminiAdapter(api_key="k")
    fake_genai.instances[0].reply = None
    assert asyncio.run(adapter.generate(_req())) == ""


def test_create_reads_key_from_resolver(fake_genai):
    class Secrets:
        def secret(self, provider, name="api_key"):
            assert (provider, name) == ("gemini", "api_key")
            return "from-resolver"

    adapter = ga.GeminiAdapter.create(model_name="m", provider_cfg={}, secrets=Secrets())
    assert adapter.model == "m"
    assert fake_genai.instances[0].kwargs["api_key"] == "from-resolver"


def test_create_without_key_fails_fast(fake_genai):
    class NoSecrets:
        def secret(self, *_a, **_k):
            return None

    with pytest.raises(ClassifiedError) as ei:
        ga.GeminiAdapter.create(model_name="m", provider_cfg={}, secrets=NoSecrets())
    assert ei.value.kind is ErrorKind.INVALID_API_KEY
