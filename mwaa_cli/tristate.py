"""Tri-state optional values: unset, explicit null, or a present value.

Optional attributes that cross the command-builder / parser boundary are one of

- ``UNSET``     the attribute was never given; omitted from commands and JSON
- ``NULL``      the attribute was explicitly cleared; serialized as JSON ``null``
- ``Value(v)``  the attribute holds ``v``

``UNSET`` and ``NULL`` both mean "no value", so ``has_value`` is false for
both, but ``is_set`` tells them apart.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Generic, Literal, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


class Absent(enum.Enum):
    UNSET = "unset"
    NULL = "null"

    def __repr__(self) -> str:
        return self.name

    def __bool__(self) -> bool:
        return False


UNSET = Absent.UNSET
NULL = Absent.NULL


@dataclass(frozen=True)
class Value(Generic[T]):
    value: T


TriState = Union[Literal[Absent.UNSET], Literal[Absent.NULL], Value[T]]


def of(value: T | None) -> TriState[T]:
    """Wrap a plain Python value: ``None`` becomes ``NULL``."""

    if isinstance(value, (Absent, Value)):
        return value  # type: ignore[return-value]
    return NULL if value is None else Value(value)


def is_set(opt: TriState[Any]) -> bool:
    return opt is not UNSET


def is_null(opt: TriState[Any]) -> bool:
    return opt is NULL


def has_value(opt: TriState[Any]) -> bool:
    return isinstance(opt, Value)


def get(opt: TriState[T], default: U = None) -> T | U:  # type: ignore[assignment]
    if isinstance(opt, Value):
        return opt.value
    return default


def map_value(opt: TriState[T], fn: Callable[[T], U]) -> TriState[U]:
    if isinstance(opt, Value):
        return Value(fn(opt.value))
    return opt


def from_json_key(obj: dict[str, Any], key: str, convert: Callable[[Any], Any] | None = None) -> TriState[Any]:
    if key not in obj:
        return UNSET
    raw = obj[key]
    if raw is None:
        return NULL
    return Value(convert(raw) if convert is not None else raw)


def put_json_key(
    out: dict[str, Any],
    key: str,
    opt: TriState[Any],
    convert: Callable[[Any], Any] | None = None,
) -> None:
    if opt is UNSET:
        return
    if opt is NULL:
        out[key] = None
        return
    if not isinstance(opt, Value):
        raise TypeError(f"expected UNSET, NULL or Value for {key!r}, got {opt!r}")
    out[key] = convert(opt.value) if convert is not None else opt.value
