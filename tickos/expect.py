"""Argument checks for script-facing calls.

Every check raises `ArgumentInvalid` at the call site so a bad call never suspends
the caller. Messages are numbered by argument position, starting at 1.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from tickos.core.errors import ArgumentInvalid

_TYPE_NAMES: dict[type, str] = {
    str: "string",
    int: "number",
    float: "number",
    bool: "boolean",
    type(None): "nil",
}


def type_name(value: Any) -> str:
    return _TYPE_NAMES.get(type(value), type(value).__name__)


def _bad_argument(*, index: int, func: str, expected: str, got: str) -> ArgumentInvalid:
    return ArgumentInvalid(f"bad argument #{index} to '{func}' (expected {expected}, got {got})")


def expect_string(index: int, value: Any, *, func: str) -> str:
    if not isinstance(value, str):
        raise _bad_argument(index=index, func=func, expected="string", got=type_name(value))
    return value


def expect_strings(values: Sequence[Any], *, func: str, start: int = 1) -> tuple[str, ...]:
    return tuple(expect_string(i, v, func=func) for i, v in enumerate(values, start=start))


def expect_number(index: int, value: Any, *, func: str, minimum: float | None = None) -> float:
    # bool is an int subclass; scripts passing True almost certainly made a mistake.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _bad_argument(index=index, func=func, expected="number", got=type_name(value))
    if not math.isfinite(value):
        raise ArgumentInvalid(f"bad argument #{index} to '{func}' (number must be finite)")
    if minimum is not None and value < minimum:
        raise ArgumentInvalid(f"bad argument #{index} to '{func}' (number must be >= {minimum:g}, got {value:g})")
    return value


def expect_integer(index: int, value: Any, *, func: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _bad_argument(index=index, func=func, expected="integer", got=type_name(value))
    return value
