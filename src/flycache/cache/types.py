# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Value types shared by the caching patterns."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

CacheOptions = Mapping[str, Any]

_RECEIVER_NAMES = ("self", "cls")


class ActionKind(Enum):
    """Caching pattern applied around an operation."""

    CACHEABLE = "cacheable"
    UPDATABLE = "updatable"
    EVICT = "evict"


class EvictionMode(Enum):
    """How an evict action removes entries. Resolved per call, never stored."""

    SINGLE_KEY = "single_key"
    KEY_SET = "key_set"
    ALL_ENTRIES = "all_entries"

    @classmethod
    def resolve(cls, all_entries: bool, keys: Sequence[Any] | None) -> EvictionMode:
        """Pick the mode: ``all_entries`` wins over a non-empty key set, which wins over a single key."""
        if all_entries:
            return cls.ALL_ENTRIES
        if keys:
            return cls.KEY_SET
        return cls.SINGLE_KEY


class HitPolicy(Enum):
    """Decides whether a value returned by ``get`` counts as a cache hit.

    ``PRESENT`` treats only ``None`` as a miss, so cached ``0``, ``False``,
    ``""`` or ``[]`` are served from the cache. ``TRUTHY`` treats every falsy
    value as a miss and re-executes the operation for it.
    """

    PRESENT = "present"
    TRUTHY = "truthy"

    def is_hit(self, value: Any) -> bool:
        if self is HitPolicy.TRUTHY:
            return bool(value)
        return value is not None


@dataclass(frozen=True)
class Invocation:
    """An operation name plus the argument values bound at call time."""

    name: str
    arguments: tuple[Any, ...] = ()

    @classmethod
    def of(cls, func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]) -> Invocation:
        """Bind a call against *func*'s signature.

        Parameters left at their default contribute the default's value, so
        omitting an argument and passing its default explicitly bind alike.
        The receiver of a method (a first parameter named ``self``/``cls`` on
        a function defined in a class body) is dropped.
        """
        bound = inspect.signature(func).bind(*args, **kwargs)
        bound.apply_defaults()
        items = list(bound.arguments.items())
        if items and _has_receiver(func, items[0][0]):
            items = items[1:]
        return cls(name=operation_name(func), arguments=tuple(value for _, value in items))


@dataclass(frozen=True)
class KeySpec:
    """Explicit key, explicit key list, or neither (derive from the invocation).

    A ``key`` of ``None`` means absent. ``keys`` only matters for evict
    actions, where a non-empty list takes precedence over ``key``.
    """

    key: Any = None
    keys: tuple[Any, ...] | None = None

    def __post_init__(self) -> None:
        if self.keys is not None and not isinstance(self.keys, tuple):
            object.__setattr__(self, "keys", tuple(self.keys))


def _has_receiver(func: Callable[..., Any], first_param: str) -> bool:
    """True when *first_param* is the receiver of a function defined in a class body."""
    # a bound method's signature already omits its receiver
    if first_param not in _RECEIVER_NAMES or inspect.ismethod(func):
        return False
    # "Repository.find" or "outer.<locals>.Repository.find", not "outer.<locals>.find"
    owner = getattr(func, "__qualname__", "").rpartition(".")[0]
    return bool(owner) and not owner.endswith("<locals>")


def operation_name(func: Callable[..., Any]) -> str:
    """Return the dotted module-qualified name used to identify an operation."""
    module = getattr(func, "__module__", None) or ""
    qualname = getattr(func, "__qualname__", None) or getattr(func, "__name__", repr(func))
    return f"{module}.{qualname}" if module else qualname
