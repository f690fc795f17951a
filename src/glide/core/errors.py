from __future__ import annotations
import asyncio
import re
from enum import Enum
from typing import Any, Optional

import httpx


class ErrorKind(str, Enum):
    INVALID_API_KEY = "INVALID_API_KEY"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    RATE_LIMITED = "RATE_LIMITED"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    CONTENT_FILTERED = "CONTENT_FILTERED"
    UNKNOWN = "UNKNOWN"


class ClassifiedError(Exception):
    """
    The only error type the generation client lets reach a caller.
    `human_message` is safe to show to the user as-is.
    """

    def __init__(
        self,
        kind: ErrorKind,
        human_message: str,
        *,
        retryable: bool = False,
        http_status: Optional[int] = None,
    ):
        super().__init__(human_message)
        self.kind = ErrorKind(kind)
        self.human_message = human_message
        self.retryable = retryable
        self.http_status = http_status

    def __repr__(self) -> str:
        return (f"ClassifiedError(kind={self.kind.value}, retryable={self.retryable}, "
                f"http_status={self.http_status}, message={self.human_message!r})")


_API_KEY = re.compile(r"api.?key", re.I)
_QUOTA = re.compile(r"quota", re.I)
_RATE_LIMIT = re.compile(r"rate.?limit|too many requests|resource.?exhausted", re.I)
_NETWORK = re.compile(
    r"network|fetch failed|connection refused|econnrefused|enotfound"
    r"|name or service not known|unreachable|offline|connection error|timed out",
    re.I,
)
_SAFETY = re.compile(r"safety|blocked|filter", re.I)

_TRANSPORT_TYPES = (ConnectionError, TimeoutError, asyncio.TimeoutError, httpx.TransportError)


def _as_status(value: Any) -> Optional[int]:
    # bool is an int subclass; a flag is never a status code
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def extract_status(exc: Any) -> Optional[int]:
    """
    Pull an HTTP status out of the shapes SDK errors come in:
    top-level status/status_code/code, or response.status(_code).
    google-genai puts the int in `code` and a string in `status`.
    """
    if exc is None:
        return None
    for attr in ("status", "status_code", "code"):
        s = _as_status(getattr(exc, attr, None))
        if s is not None:
            return s
    response = getattr(exc, "response", None)
    if response is not None:
        for attr in ("status", "status_code"):
            s = _as_status(getattr(response, attr, None))
            if s is not None:
                return s
    return None


def _is_transport_failure(exc: BaseException) -> bool:
    """
    True when `exc`, or anything it was raised from, is a socket/transport
    fault. SDKs re-raise httpx errors as their own types (openai's
    APIConnectionError, APITimeoutError), so the chain has to be walked.
    """
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, _TRANSPORT_TYPES):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


def timeout_error(timeout_ms: int) -> ClassifiedError:
    # Large inputs time out deterministically, so this is never retried
    return ClassifiedError(
        ErrorKind.TIMEOUT,
        f"Request timed out after {timeout_ms / 1000:g}s. "
        "The email may be too long. Try a shorter selection.",
        retryable=False,
    )


def classify_error(exc: BaseException) -> ClassifiedError:
    """
    Map any failure to a ClassifiedError. First match wins:
    auth, quota, rate limit, network, content filter, 5xx, unknown.
    """
    if isinstance(exc, ClassifiedError):
        return exc

    message = str(exc) or exc.__class__.__name__
    status = extract_status(exc)

    if status in (401, 403) or _API_KEY.search(message):
        err = ClassifiedError(
            ErrorKind.INVALID_API_KEY,
            "Invalid or expired API key. Please check your GEMINI_API_KEY.",
            retryable=False,
            http_status=status,
        )
    elif status == 429 and _QUOTA.search(message):
        # Quota exhaustion is terminal; it must win over the generic 429 retry path
        err = ClassifiedError(
            ErrorKind.QUOTA_EXCEEDED,
            "API quota exceeded. Check your billing and quota settings in the Google Cloud Console.",
            retryable=False,
            http_status=429,
        )
    elif status == 429 or _RATE_LIMIT.search(message):
        err = ClassifiedError(
            ErrorKind.RATE_LIMITED,
            "Rate limited by the generation service. Retrying with backoff…",
            retryable=True,
            http_status=429,
        )
    elif _is_transport_failure(exc) or _NETWORK.search(message):
        err = ClassifiedError(
            ErrorKind.NETWORK_ERROR,
            "Network error. Please check your internet connection.",
            retryable=True,
            http_status=status,
        )
    elif _SAFETY.search(message):
        err = ClassifiedError(
            ErrorKind.CONTENT_FILTERED,
            "The response was blocked by content safety filters.",
            retryable=False,
            http_status=status,
        )
    elif status is not None and status >= 500:
        err = ClassifiedError(
            ErrorKind.UNKNOWN,
            f"Server error ({status}). Retrying…",
            retryable=True,
            http_status=status,
        )
    else:
        err = ClassifiedError(
            ErrorKind.UNKNOWN,
            f"Unexpected error: {message[:200]}",
            retryable=False,
            http_status=status,
        )

    err.__cause__ = exc
    return err


def require_api_key(api_key: Optional[str], env_hint: str = "GEMINI_API_KEY") -> str:
    """Reject a missing credential when a handle is built, not on first use."""
    if not api_key or not api_key.strip():
        raise ClassifiedError(
            ErrorKind.INVALID_API_KEY,
            f"API key is required. Please set {env_hint} in your .env file.",
            retryable=False,
        )
    return api_key.strip()


def not_initialised_error() -> ClassifiedError:
    return ClassifiedError(
        ErrorKind.INVALID_API_KEY,
        "Generation client not initialised. Configure an API key first.",
        retryable=False,
    )
