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
"""Redis-backed cache adapter."""

from __future__ import annotations

import json
import logging
from typing import Any, cast

from flycache.cache.adapters.memory import ttl_seconds
from flycache.cache.types import CacheOptions
from flycache.kernel.exceptions import InfrastructureException

_logger = logging.getLogger(__name__)


class RedisCacheAdapter:
    """Cache adapter that delegates to a ``redis.asyncio.Redis``-like client.

    Values are JSON-serialized before storage so that any JSON-compatible
    Python object can be cached transparently. Non-string keys are rendered
    with ``str``. All methods are coroutines, so this adapter serves
    decorated coroutine functions.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    @staticmethod
    def _key(key: Any) -> str:
        return key if isinstance(key, str) else str(key)

    async def get(self, key: Any, options: CacheOptions | None = None) -> Any | None:
        """Retrieve and deserialize a cached value."""
        raw = await self._client.get(self._key(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            _logger.warning("Failed to deserialize cached value for key '%s'", key)
            return None

    async def set(self, key: Any, value: Any, options: CacheOptions | None = None) -> Any:
        """Serialize and store a value with an optional ``ttl`` option."""
        raw = json.dumps(value)
        seconds = ttl_seconds(options or {})
        ex = max(1, int(seconds)) if seconds is not None else None
        await self._client.set(self._key(key), raw.encode(), ex=ex)
        return value

    async def delete(self, key: Any) -> bool:
        """Remove a key. Returns True if the key existed."""
        count = await self._client.delete(self._key(key))
        return cast(bool, count > 0)

    async def flush(self) -> None:
        """Flush the entire database."""
        await self._client.flushdb()

    async def start(self) -> None:
        """Validate connectivity by pinging Redis."""
        try:
            await self._client.ping()
        except Exception as exc:
            raise InfrastructureException(
                f"Redis cache is unreachable: {exc}",
                code="CACHE_UNREACHABLE",
            ) from exc

    async def stop(self) -> None:
        """Close the underlying Redis connection."""
        await self._client.aclose()
