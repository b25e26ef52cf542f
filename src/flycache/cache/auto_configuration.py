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
"""Cache subsystem auto-configuration."""

from __future__ import annotations

import importlib
from typing import NamedTuple

import structlog

from flycache.cache.executor import PatternExecutor
from flycache.cache.keys import KeyResolver
from flycache.cache.ports.outbound import CacheBackend
from flycache.cache.types import HitPolicy
from flycache.config.properties.cache import CacheProperties
from flycache.core.config import Config
from flycache.kernel.exceptions import ConfigurationException
from flycache.logging.port import LoggingPort
from flycache.logging.structlog_adapter import StructlogAdapter

logger = structlog.get_logger("flycache.cache.auto")


class CacheSetup(NamedTuple):
    """Everything :meth:`CacheAutoConfiguration.configure` wires from one ``Config``."""

    backend: CacheBackend | None
    executor: PatternExecutor
    logging: LoggingPort


class CacheAutoConfiguration:
    """Builds logging, a cache backend and an executor from ``flycache.*`` properties."""

    @staticmethod
    def is_available(module_name: str) -> bool:
        """Check if a Python package is importable."""
        try:
            importlib.import_module(module_name)
            return True
        except ImportError:
            return False

    @classmethod
    def detect_provider(cls, asynchronous: bool = True) -> str:
        """Detect the best available cache provider.

        The Redis adapter is ``async`` only, so it is picked only for callers
        that run in coroutines. Sync callers always get the in-memory backend;
        decorating a plain function with the Redis adapter would raise
        :class:`~flycache.kernel.exceptions.BackendModeError` on every call.
        """
        if asynchronous and cls.is_available("redis.asyncio"):
            return "redis"
        return "memory"

    def configure_logging(self, config: Config, adapter: LoggingPort | None = None) -> LoggingPort:
        """Apply ``flycache.logging.*`` to *adapter* (a :class:`StructlogAdapter` by default)."""
        adapter = adapter or StructlogAdapter()
        adapter.configure(config)
        return adapter

    def cache_backend(self, config: Config, asynchronous: bool = True) -> CacheBackend | None:
        """Create the configured backend, or ``None`` when caching is disabled.

        *asynchronous* only matters for ``provider: auto``: pass ``False`` when
        the backend will serve plain (non-coroutine) functions.
        """
        props = config.bind(CacheProperties)
        if not props.enabled:
            logger.info("auto_config_skip", subsystem="cache", reason="disabled")
            return None

        provider = props.provider if props.provider != "auto" else self.detect_provider(asynchronous)

        if provider == "redis" and self.is_available("redis.asyncio"):
            import redis.asyncio as aioredis

            from flycache.cache.adapters.redis import RedisCacheAdapter

            url = str(props.redis.get("url", "redis://localhost:6379/0"))
            logger.info("auto_configured", subsystem="cache", provider="redis")
            return RedisCacheAdapter(client=aioredis.from_url(url))

        from flycache.cache.adapters.memory import InMemoryCache

        logger.info("auto_configured", subsystem="cache", provider="memory")
        return InMemoryCache()

    def pattern_executor(self, config: Config) -> PatternExecutor:
        """Create an executor honouring the configured hit policy, key prefix and default TTL."""
        props = config.bind(CacheProperties)
        try:
            hit_policy = HitPolicy(str(props.hit_policy).lower())
        except ValueError as exc:
            raise ConfigurationException(
                f"Invalid flycache.cache.hit_policy '{props.hit_policy}': expected 'present' or 'truthy'",
                code="CACHE_HIT_POLICY",
                context={"hit_policy": props.hit_policy},
            ) from exc
        default_options = {"ttl": props.ttl} if props.ttl > 0 else None
        return PatternExecutor(
            key_resolver=KeyResolver(prefix=props.key_prefix),
            hit_policy=hit_policy,
            default_options=default_options,
        )

    def configure(self, config: Config, asynchronous: bool = True) -> CacheSetup:
        """Configure logging first, then build the backend and executor."""
        adapter = self.configure_logging(config)
        return CacheSetup(
            backend=self.cache_backend(config, asynchronous),
            executor=self.pattern_executor(config),
            logging=adapter,
        )
