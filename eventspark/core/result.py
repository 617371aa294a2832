"""Tagged success/failure values returned across the event source boundary.

Event sources never raise to their callers. Each operation returns either
``Ok(value)`` or ``Err(error)`` and the caller branches on it::

    result = source.get_by_id(event_id)
    if not result.ok:
        ...  # result.error is a NotFoundError, ValidationError or DatabaseError
    event = result.value
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from eventspark.core.errors import AppError

T = TypeVar("T")
E = TypeVar("E", bound=AppError)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err[E]]
