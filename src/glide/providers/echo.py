from __future__ import annotations
import asyncio
import json
from typing import Any, Dict, List, Optional

from glide.core.types import GenerationRequest
from glide.providers.registry import ProviderRegistry

_LOREM_50 = (
    "Lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua Curabitur non nulla sit amet nisl "
    "tempor convallis quis ac lectus Phasellus viverra nulla ut metus varius laoreet "
    "Quisque rutrum Aenean imperdiet Etiam ultricies nisi vel augue Curabitur ullamcorper ultricies nisi"
).split()


@ProviderRegistry.register("echo")
class EchoProvider:
    """
    Offline handle that returns a fixed 50-word lorem ipsum, or
    {"text": <lorem>} in structured mode. `latency` simulates a slow service.
    """
    model = "echo-lorem"

    def __init__(self, latency: float = 0.0, words: Optional[List[str]] = None):
        self.latency = float(latency)
        self.words = list(words) if words is not None else list(_LOREM_50)

    @classmethod
    def create(cls, *, model_name: str, provider_cfg: Dict[str, Any], secrets) -> "EchoProvider":
        return cls(latency=float((provider_cfg or {}).get("latency", 0.0)))

    async def generate(self, request: GenerationRequest) -> str:
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        text = " ".join(self.words)
        if request.structured:
            return json.dumps({"text": text})
        return text
