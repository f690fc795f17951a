from __future__ import annotations
from typing import Protocol

from .types import GenerationRequest


class ClientHandle(Protocol):
    """
    Interface the dispatcher uses to talk to any generation backend.
    Created once from a credential; never mutated afterwards.
    """

    # Default model name, also used for logging
    model: str

    async def generate(self, request: GenerationRequest) -> str:
        """
        Single attempt. Returns the raw response text (may be empty).
        Raises whatever the underlying SDK raises; classification is the caller's job.
        """
        ...
