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
"""Default cache key derivation.

When a caching action is declared without a key, the key is the SHA-256 of a
canonical JSON rendering of ``(operation name, argument values)``. Distinct
invocations can only share a key through a hash collision.

Keys are stable across processes for arguments built from JSON scalars,
floats, bytes, enums, containers, dataclasses and pydantic models. Any other
object is rendered with ``repr``: a type without a value-based ``__repr__``
yields the default ``<Foo object at 0x...>``, so its key depends on object
identity and differs between processes. Pass an explicit key for such
arguments.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from collections.abc import Mapping, Sequence, Set
from enum import Enum
from typing import Any

from pydantic import BaseModel


def _type_name(value: Any) -> str:
    cls = type(value)
    return f"{cls.__module__}.{cls.__qualname__}"


def _canonical(value: Any) -> Any:
    """Reduce *value* to JSON data with a stable ordering.

    Only ``None``, ``bool``, ``int``, ``str`` and sequences map to plain JSON.
    Every other type becomes a single-key tagged object, so values of
    different types never render alike.
    """
    if isinstance(value, Enum):
        return {"__enum__": [_type_name(value), _canonical(value.value)]}
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        # repr keeps NaN/inf, which are not valid JSON numbers
        return {"__float__": repr(value)}
    if isinstance(value, (bytes, bytearray)):
        return {"__bytes__": bytes(value).hex()}
    if isinstance(value, BaseModel):
        return {"__obj__": [_type_name(value), _canonical(value.model_dump())]}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        return {"__obj__": [_type_name(value), _canonical(fields)]}
    if isinstance(value, Mapping):
        items = [[_canonical(k), _canonical(v)] for k, v in value.items()]
        return {"__map__": sorted(items, key=_sort_key)}
    if isinstance(value, Set):
        return {"__set__": sorted((_canonical(v) for v in value), key=_sort_key)}
    if isinstance(value, Sequence):
        return [_canonical(v) for v in value]
    # only stable when the type defines a value-based __repr__
    return {"__repr__": [_type_name(value), repr(value)]}


def _sort_key(item: Any) -> str:
    return json.dumps(item, sort_keys=True, separators=(",", ":"))


def default_key(name: str, arguments: Sequence[Any]) -> str:
    """Derive the cache key for an invocation of *name* with *arguments*."""
    payload = json.dumps(
        [name, [_canonical(arg) for arg in arguments]],
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class KeyResolver:
    """Derives keys for invocations that were not given one explicitly.

    Args:
        prefix: Optional namespace prepended as ``"{prefix}:{digest}"``.
    """

    def __init__(self, prefix: str = "") -> None:
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def resolve(self, name: str, arguments: Sequence[Any]) -> str:
        digest = default_key(name, arguments)
        return f"{self._prefix}:{digest}" if self._prefix else digest
