# src/glide/core/types.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type

JsonDict = Dict[str, Any]

FALLBACK_MODEL = "gemini-3-flash-preview"


@dataclass(frozen=True)
class GenerationRequest:
    """
    One fully-resolved call to the generation service.
    Built by the dispatcher; handles only read it.
    """
    prompt: str
    model: str
    temperature: float
    max_output_tokens: int
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    timeout_ms: Optional[int] = None

    # structured mode
    structured: bool = False
    system_instruction: Optional[str] = None
    response_schema: Optional[JsonDict] = None
    disable_reasoning: bool = True

    def __post_init__(self):
        if not self.model:
            raise ValueError("model must be a non-empty string")
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(f"temperature must be in [0, 2], got {self.temperature}")
        if self.max_output_tokens <= 0:
            raise ValueError(f"max_output_tokens must be > 0, got {self.max_output_tokens}")
        if self.top_p is not None and not 0.0 <= self.top_p <= 1.0:
            raise ValueError(f"top_p must be in [0, 1], got {self.top_p}")
        if self.top_k is not None and self.top_k < 0:
            raise ValueError(f"top_k must be >= 0, got {self.top_k}")
        if self.timeout_ms is not None and self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got {self.timeout_ms}")


@dataclass(frozen=True)
class GenerateOptions:
    """Caller-facing knobs for plain-text generation. None means 'use default'."""
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    model: Optional[str] = None
    timeout_ms: Optional[int] = None


@dataclass(frozen=True)
class StructuredOptions:
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None
    model: Optional[str] = None
    system_instruction: Optional[str] = None
    response_schema: Optional[JsonDict] = None
    timeout_ms: Optional[int] = None
    # Optional pydantic model the parsed JSON is validated into
    model_type: Optional[Type[Any]] = None


@dataclass(frozen=True)
class GenerationDefaults:
    # plain text
    temperature: float = 1.0
    max_output_tokens: int = 2048
    top_p: float = 0.95
    top_k: int = 40
    # structured
    structured_temperature: float = 0.1
    structured_max_output_tokens: int = 1024

    @classmethod
    def from_config(cls, section: Optional[JsonDict]) -> "GenerationDefaults":
        known = {k: v for k, v in (section or {}).items() if k in cls.__dataclass_fields__}
        return cls(**known)
