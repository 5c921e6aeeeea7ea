# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Result type and the short-circuit combinator used by every auth flow.

A step is any callable ``value -> Result``. Steps report expected failures
as ``Err(code)`` instead of raising; ``bind`` skips a step once an error is
present, so a chain of steps stops at the first failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Tuple, TypeVar, Union

from tokenauth.core.errors import ErrorCode

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def __post_init__(self) -> None:
        if self.value is None:
            raise ValueError("Ok requires a value")

    @property
    def is_ok(self) -> bool:
        return True

    def as_tuple(self) -> Tuple[T, None]:
        return (self.value, None)


@dataclass(frozen=True)
class Err:
    error: ErrorCode

    def __post_init__(self) -> None:
        if not isinstance(self.error, ErrorCode):
            raise ValueError(f"Err requires an ErrorCode, got {self.error!r}")

    @property
    def is_ok(self) -> bool:
        return False

    def as_tuple(self) -> Tuple[None, ErrorCode]:
        return (None, self.error)


Result = Union[Ok[T], Err]
Step = Callable[[Any], "Result[Any]"]


def from_tuple(pair: Tuple[Optional[T], Optional[ErrorCode]]) -> Result[T]:
    """Build a Result from a ``(value, error)`` pair holding exactly one non-None item."""
    value, error = pair
    if (value is None) == (error is None):
        raise ValueError("exactly one of value/error must be set")
    if error is not None:
        return Err(error)
    return Ok(value)


def _run(step: Step, value: Any) -> Result[Any]:
    out = step(value)
    if not isinstance(out, (Ok, Err)):
        name = getattr(step, "__name__", repr(step))
        raise TypeError(f"step {name} returned {type(out).__name__}, expected Ok or Err")
    return out


def bind(step: Step, result: Result[Any]) -> Result[Any]:
    if isinstance(result, Err):
        return result
    return _run(step, result.value)


def pipeline(value: Any, *steps: Step) -> Result[Any]:
    """Feed raw ``value`` to the first step, then ``bind`` the rest; the first Err wins.

    The raw input is never wrapped, so the first step may receive ``None``
    and reject it with an Err.
    """
    if not steps:
        return Ok(value)
    first, *rest = steps
    result = _run(first, value)
    for step in rest:
        result = bind(step, result)
    return result
