# src/glide/providers/openai_adapter.py
from __future__ import annotations
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from glide.core.types import GenerationRequest
from glide.core.errors import require_api_key
from glide.providers.registry import ProviderRegistry


@ProviderRegistry.register("openai")
class OpenAIAdapter:
    """
    Thin handle over chat completions:
    - top_k has no equivalent and is not sent
    - structured mode maps to response_format (json_schema when a schema is given)
    - 'params' from provider config are passed through verbatim
    SDK errors carry `status_code`, which the classifier reads directly.
    """

    def __init__(
        self,
        model: str,
        api_key: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        base_url: Optional[str] = None,
        organization: Optional[str] = None,
    ):
        api_key = require_api_key(api_key, "OPENAI_API_KEY")
        self.model = model
        client_kwargs: Dict[str, Any] = {"api_key": api_key, "max_retries": 0}
        if base_url:
            client_kwargs["base_url"] = base_url
        if organization:
            client_kwargs["organization"] = organization
        # SDK retries are off; the dispatcher owns retry policy
        self.client = AsyncOpenAI(**client_kwargs)
        self.params = dict(params or {})

    @classmethod
    def create(cls, *, model_name: str, provider_cfg: Dict[str, Any], secrets) -> "OpenAIAdapter":
        provider_cfg = provider_cfg or {}
        return cls(
            model=model_name,
            api_key=secrets.secret("openai", "api_key") or "",
            params=provider_cfg.get("params"),
            base_url=provider_cfg.get("base_url"),
            organization=provider_cfg.get("organization"),
        )

    def build_args(self, req: GenerationRequest) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = []
        if req.structured and req.system_instruction:
            messages.append({"role": "system", "content": req.system_instruction})
        messages.append({"role": "user", "content": req.prompt})

        args: Dict[str, Any] = {
            "model": req.model,
            "messages": messages,
            "temperature": req.temperature,
            "max_completion_tokens": req.max_output_tokens,
        }
        if req.top_p is not None:
            args["top_p"] = req.top_p

        if req.structured:
            if req.response_schema is not None:
                args["response_format"] = {
                    "type": "json_schema",
                    "json_schema": {"name": "response", "schema": req.response_schema},
                }
            else:
                args["response_format"] = {"type": "json_object"}

        args.update(self.params)
        return args

    async def generate(self, request: GenerationRequest) -> str:
        resp = await self.client.chat.completions.create(**self.build_args(request))
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""
