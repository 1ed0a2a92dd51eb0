"""
Uniform result values returned by the classifier and the blocklist store.

Every operation that crosses the authority boundary reports ``Ok`` or
``Err`` instead of raising, so callers match on one enumerable contract.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")

NETWORK_ERROR_MESSAGE = "Network error. Please check the server."


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    AUTHORITY = "authority"
    TRANSPORT = "transport"


@dataclass(frozen=True)
class Ok(Generic[T]):
    data: T = None  # type: ignore[assignment]

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    # Classifier rejections carry their ValidationReason here
    reason: Any = None

    @property
    def success(self) -> bool:
        return False


Result = Union[Ok[T], Err]
