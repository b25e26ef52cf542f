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
"""Cache backend protocol."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from flycache.cache.types import CacheOptions


@runtime_checkable
class CacheBackend(Protocol):
    """Capability interface the caching patterns consume.

    Methods may be plain or ``async``. ``get`` returns ``None`` when the key
    is absent, ``set`` upserts and returns the stored value, ``delete`` of a
    missing key is not an error, and ``flush`` removes every entry this
    handle addresses.
    """

    def get(self, key: Any, options: CacheOptions) -> Any: ...

    def set(self, key: Any, value: Any, options: CacheOptions) -> Any: ...

    def delete(self, key: Any) -> Any: ...

    def flush(self) -> Any: ...
