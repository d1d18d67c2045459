"""Explicit success/failure results for the batch and detection layers."""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """A completed operation and its value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """A failed operation and the exception that caused it."""

    error: BaseException

    @property
    def ok(self) -> bool:
        return False


Outcome = Success | Failure
