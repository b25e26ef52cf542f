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
"""In-process cache backend."""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Any

from flycache.cache.types import CacheOptions


def ttl_seconds(options: CacheOptions) -> float | None:
    """Read the ``ttl`` option as seconds. ``None``, ``0`` and negatives mean no expiry."""
    ttl = options.get("ttl")
    if ttl is None:
        return None
    seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)
    return seconds if seconds > 0 else None


class InMemoryCache:
    """Dict-backed cache with optional per-entry TTL.

    Suitable for development, testing, and single-process applications.
    Keys may be any hashable value.
    """

    def __init__(self) -> None:
        self._store: dict[Any, tuple[Any, float | None]] = {}

    def get(self, key: Any, options: CacheOptions | None = None) -> Any | None:
        """Get a value by key. Returns None if missing or expired."""
        entry = self._store.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if expires_at is not None and time.monotonic() > expires_at:
            del self._store[key]
            return None

        return value

    def set(self, key: Any, value: Any, options: CacheOptions | None = None) -> Any:
        """Store a value, honouring a ``ttl`` option. Returns the value."""
        seconds = ttl_seconds(options or {})
        expires_at = time.monotonic() + seconds if seconds is not None else None
        self._store[key] = (value, expires_at)
        return value

    def delete(self, key: Any) -> bool:
        """Remove a key. Returns True if the key existed."""
        return self._store.pop(key, None) is not None

    def flush(self) -> None:
        self._store.clear()

    def size(self) -> int:
        """Number of stored entries, including expired ones not yet purged."""
        return len(self._store)
