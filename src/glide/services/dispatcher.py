# src/glide/services/dispatcher.py
from __future__ import annotations
import asyncio
import logging
import uuid
from typing import Any, Optional, Union

from pydantic import ValidationError

from glide.core.errors import (
    ClassifiedError,
    ErrorKind,
    classify_error,
    not_initialised_error,
    timeout_error,
)
from glide.core.ports import ClientHandle
from glide.core.result import Err, Ok, capture
from glide.core.telemetry import LLMCallLog, log_llm_call, now_ms
from glide.core.types import (
    FALLBACK_MODEL,
    GenerateOptions,
    GenerationDefaults,
    GenerationRequest,
    StructuredOptions,
)
from glide.resilience.retry import RetryPolicy, with_retry
from glide.resilience.timeout_policy import TimeoutPolicy
from glide.services.response_parser import parse_json

logger = logging.getLogger(__name__)


def _pick(value, default):
    return default if value is None else value


class RequestDispatcher:
    """
    Turns a prompt into one resilient call on the injected client handle:
    each attempt is raced against TimeoutPolicy, failures are classified
    where they happen, and RetryPolicy decides whether to go again.
    """

    def __init__(
        self,
        client: Optional[ClientHandle],
        *,
        timeout_policy: Optional[TimeoutPolicy] = None,
        retry_policy: Optional[RetryPolicy] = None,
        defaults: Optional[GenerationDefaults] = None,
        default_model: Optional[str] = None,
        provider_name: Optional[str] = None,
    ):
        self.client = client
        self.timeout_policy = timeout_policy or TimeoutPolicy()
        self.retry_policy = retry_policy or RetryPolicy()
        self.defaults = defaults or GenerationDefaults()
        self.default_model = default_model or getattr(client, "model", None) or FALLBACK_MODEL
        self.provider_name = provider_name or type(client).__name__

    # ----- public API -----

    async def generate_text(self, prompt: str, options: Optional[GenerateOptions] = None) -> str:
        client = self._require_client()
        o = options or GenerateOptions()
        d = self.defaults
        req = self._request(
            prompt=prompt,
            model=o.model,
            temperature=_pick(o.temperature, d.temperature),
            max_output_tokens=_pick(o.max_output_tokens, d.max_output_tokens),
            top_p=_pick(o.top_p, d.top_p),
            top_k=_pick(o.top_k, d.top_k),
            timeout_ms=o.timeout_ms,
        )
        return await self._run(client, req, mode="text")

    async def generate_structured(self, prompt: str, options: Optional[StructuredOptions] = None) -> Any:
        client = self._require_client()
        o = options or StructuredOptions()
        d = self.defaults
        req = self._request(
            prompt=prompt,
            model=o.model,
            temperature=_pick(o.temperature, d.structured_temperature),
            max_output_tokens=_pick(o.max_output_tokens, d.structured_max_output_tokens),
            timeout_ms=o.timeout_ms,
            structured=True,
            system_instruction=o.system_instruction,
            response_schema=o.response_schema,
            disable_reasoning=True,
        )
        text = await self._run(client, req, mode="structured")
        data = parse_json(text)
        if o.model_type is None:
            return data
        try:
            return o.model_type.model_validate(data)
        except ValidationError as e:
            raise ClassifiedError(
                ErrorKind.UNKNOWN,
                f"Model returned JSON that does not match the expected shape "
                f"({e.error_count()} validation errors).",
                retryable=False,
            ) from e

    async def try_generate_text(
        self, prompt: str, options: Optional[GenerateOptions] = None
    ) -> Union[Ok[str], Err]:
        return await capture(self.generate_text(prompt, options))

    async def try_generate_structured(
        self, prompt: str, options: Optional[StructuredOptions] = None
    ) -> Union[Ok[Any], Err]:
        return await capture(self.generate_structured(prompt, options))

    # ----- internals -----

    def _require_client(self) -> ClientHandle:
        if self.client is None:
            raise not_initialised_error()
        return self.client

    def _request(self, *, prompt: str, model: Optional[str], timeout_ms: Optional[int], **kwargs) -> GenerationRequest:
        try:
            return GenerationRequest(
                prompt=prompt,
                model=model or self.default_model,
                timeout_ms=timeout_ms,
                **kwargs,
            )
        except ValueError as e:
            raise ClassifiedError(ErrorKind.UNKNOWN, f"Invalid request: {e}", retryable=False) from e

    async def _call(self, client: ClientHandle, req: GenerationRequest) -> str:
        try:
            return await client.generate(req)
        except (asyncio.TimeoutError, TimeoutError) as e:
            # A timeout raised by the SDK itself, not our deadline
            raise classify_error(e) from e

    async def _attempt(self, client: ClientHandle, req: GenerationRequest, timeout_ms: int) -> str:
        try:
            # wait_for cancels the pending call when the timer wins
            text = await asyncio.wait_for(self._call(client, req), timeout=timeout_ms / 1000.0)
        except asyncio.TimeoutError as e:
            raise timeout_error(timeout_ms) from e
        except ClassifiedError:
            raise
        except Exception as e:
            raise classify_error(e) from e

        if not text or not text.strip():
            raise ClassifiedError(
                ErrorKind.CONTENT_FILTERED,
                "The model returned an empty response. The content may have been filtered.",
                retryable=False,
            )
        return text

    async def _run(self, client: ClientHandle, req: GenerationRequest, *, mode: str) -> str:
        timeout_ms = self.timeout_policy.compute_timeout(len(req.prompt), req.timeout_ms)
        trace_id = str(uuid.uuid4())
        attempts = 0
        start = now_ms()

        async def attempt() -> str:
            nonlocal attempts
            attempts += 1
            return await self._attempt(client, req, timeout_ms)

        def on_retry(n: int, err: ClassifiedError) -> None:
            logger.warning("trace_id=%s attempt=%s kind=%s retrying", trace_id, n, err.kind.value)

        def log(ok: bool, kind: Optional[str] = None) -> None:
            log_llm_call(
                LLMCallLog(
                    trace_id=trace_id,
                    provider=self.provider_name,
                    model=req.model,
                    mode=mode,
                    prompt_chars=len(req.prompt),
                    timeout_ms=timeout_ms,
                    latency_ms=now_ms() - start,
                    attempts=attempts,
                    ok=ok,
                    error_kind=kind,
                )
            )

        try:
            text = await with_retry(attempt, self.retry_policy, on_retry=on_retry)
        except ClassifiedError as e:
            log(False, e.kind.value)
            raise
        log(True)
        return text
