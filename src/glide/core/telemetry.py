# src/glide/core/telemetry.py

import logging
import time
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger("glide.llm")


@dataclass
class LLMCallLog:
    trace_id: str
    provider: str
    model: str
    mode: str                      # "text" | "structured"
    prompt_chars: int
    timeout_ms: int
    latency_ms: int
    attempts: int
    ok: bool
    error_kind: Optional[str] = None


def now_ms() -> int:
    return int(time.monotonic() * 1000)


def log_llm_call(item: LLMCallLog) -> None:
    # Never log prompt text, only its size
    logger.info(
        "llm_call trace_id=%s provider=%s model=%s mode=%s prompt_chars=%s timeout_ms=%s "
        "latency_ms=%s attempts=%s ok=%s error=%s",
        item.trace_id,
        item.provider,
        item.model,
        item.mode,
        item.prompt_chars,
        item.timeout_ms,
        item.latency_ms,
        item.attempts,
        item.ok,
        item.error_kind,
    )
