# src/glide/providers/gemini_adapter.py
from __future__ import annotations
from typing import Any, Dict, Optional

from google import genai
from google.genai import types

from glide.core.errors import require_api_key
from glide.core.types import FALLBACK_MODEL, GenerationRequest
from glide.providers.registry import ProviderRegistry
from glide.services.response_parser import extract_text


@ProviderRegistry.register("gemini")
class GeminiAdapter:
    """
    Google Gen AI (Gemini) handle on the async client.
    Single attempt per generate(); timeouts and retries live in the dispatcher.
    """

    def __init__(self, api_key: str, model: str = FALLBACK_MODEL, *, api_version: Optional[str] = None):
        api_key = require_api_key(api_key, "GEMINI_API_KEY")
        self.model = model
        client_kwargs: Dict[str, Any] = {"api_key": api_key}
        if api_version:
            client_kwargs["http_options"] = types.HttpOptions(api_version=api_version)
        self.client = genai.Client(**client_kwargs)

    @classmethod
    def create(cls, *, model_name: str, provider_cfg: Dict[str, Any], secrets) -> "GeminiAdapter":
        api_key = secrets.secret("gemini", "api_key")
        return cls(
            api_key=api_key or "",
            model=model_name,
            api_version=(provider_cfg or {}).get("api_version"),
        )

    def build_config(self, req: GenerationRequest) -> types.GenerateContentConfig:
        cfg: Dict[str, Any] = {
            "temperature": req.temperature,
            "max_output_tokens": req.max_output_tokens,
        }
        if req.top_p is not None:
            cfg["top_p"] = req.top_p
        if req.top_k is not None:
            cfg["top_k"] = req.top_k

        if req.structured:
            cfg["response_mime_type"] = "application/json"
            if req.response_schema is not None:
                cfg["response_schema"] = req.response_schema
            if req.system_instruction:
                cfg["system_instruction"] = req.system_instruction
            if req.disable_reasoning:
                # Thinking tokens come out of max_output_tokens; keep them all for the JSON
                cfg["thinking_config"] = types.ThinkingConfig(thinking_budget=0)

        return types.GenerateContentConfig(**cfg)

    async def generate(self, request: GenerationRequest) -> str:
        response = await self.client.aio.models.generate_content(
            model=request.model,
            contents=request.prompt,
            config=self.build_config(request),
        )
        return extract_text(response)
