"""
Fact locking.

A fact is evaluated by every rule in turn. Locking it before the first rule
runs keeps one handler from reassigning top-level keys or attributes that a
later rule evaluating the same fact would read.
"""

import dataclasses
import datetime
import decimal
import enum
import uuid
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel

# Values that cannot be reassigned in place, passed through as they are
_IMMUTABLE_TYPES = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    tuple,
    frozenset,
    decimal.Decimal,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
    enum.Enum,
)


class FrozenList(tuple):
    """A list fact locked as a tuple; unlocked back to a list for schema libraries."""

    __slots__ = ()


class LockedFact:
    """
    Read-only view of an object fact.

    Attribute and item reads go to the wrapped object; attribute assignment
    and deletion raise TypeError. ``isinstance`` checks see the wrapped class.
    """

    __slots__ = ("_fact",)

    def __init__(self, fact: Any):
        object.__setattr__(self, "_fact", fact)

    @property
    def __class__(self):
        return type(self._fact)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._fact, name)

    def __setattr__(self, name: str, value: Any) -> None:
        raise TypeError(f"Fact is locked; cannot set attribute '{name}'")

    def __delattr__(self, name: str) -> None:
        raise TypeError(f"Fact is locked; cannot delete attribute '{name}'")

    def __getitem__(self, key: Any) -> Any:
        return self._fact[key]

    def __eq__(self, other: Any) -> bool:
        if type(other) is LockedFact:
            other = other._fact
        return self._fact == other

    def __hash__(self) -> int:
        return hash(self._fact)

    def __repr__(self) -> str:
        return f"LockedFact({self._fact!r})"


def _is_frozen_object(fact: Any) -> bool:
    if dataclasses.is_dataclass(fact) and not isinstance(fact, type):
        return fact.__dataclass_params__.frozen
    if isinstance(fact, BaseModel):
        return bool(fact.model_config.get("frozen"))
    return False


def freeze_fact(fact: Any) -> Any:
    """
    Return a shallowly immutable version of a fact.

    Mappings become read-only mapping proxies over a shallow copy, lists become
    ``FrozenList`` tuples and sets become frozensets. Immutable values, frozen
    dataclasses and frozen pydantic models are returned unchanged; any other
    object is wrapped in a ``LockedFact``. Nested values are not copied.
    """
    if isinstance(fact, (MappingProxyType, LockedFact)):
        return fact
    if isinstance(fact, _IMMUTABLE_TYPES) or _is_frozen_object(fact):
        return fact
    if isinstance(fact, Mapping):
        return MappingProxyType(dict(fact))
    if isinstance(fact, list):
        return FrozenList(fact)
    if isinstance(fact, set):
        return frozenset(fact)
    return LockedFact(fact)


def thaw_fact(fact: Any) -> Any:
    """Plain value behind a locked fact, for schema libraries."""
    if type(fact) is LockedFact:
        return object.__getattribute__(fact, "_fact")
    if isinstance(fact, MappingProxyType):
        return dict(fact)
    if isinstance(fact, FrozenList):
        return list(fact)
    return fact
