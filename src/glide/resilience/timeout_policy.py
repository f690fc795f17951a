from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TimeoutPolicy:
    """
    Per-request timeout that grows in steps of `per_block_ms`
    for every started `block_chars` of prompt, capped at `max_ms`.
    """
    base_ms: int = 30_000
    per_block_ms: int = 10_000
    block_chars: int = 5_000
    max_ms: int = 90_000

    def compute_timeout(self, prompt_length: int, override_ms: Optional[int] = None) -> int:
        if override_ms:
            return int(override_ms)
        blocks = math.ceil(max(0, prompt_length) / self.block_chars)
        return min(self.base_ms + blocks * self.per_block_ms, self.max_ms)
