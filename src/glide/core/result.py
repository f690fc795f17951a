from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, TypeVar, Union

from .errors import ClassifiedError, classify_error

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: bool = True


@dataclass(frozen=True)
class Err:
    error: ClassifiedError
    ok: bool = False

    @property
    def kind(self):
        return self.error.kind

    @property
    def retryable(self) -> bool:
        return self.error.retryable


Outcome = Union[Ok[Any], Err]


async def capture(awaitable: Awaitable[T]) -> Union[Ok[T], Err]:
    """
    Await and fold the result into Ok/Err.
    Anything raised is classified; cancellation still propagates.
    """
    try:
        return Ok(await awaitable)
    except Exception as e:
        return Err(classify_error(e))
