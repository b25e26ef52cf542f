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
"""Decision procedures for the read-through and write-through patterns.

``PatternExecutor`` runs one caching action around one invocation:

- CACHEABLE: ``get``; on a hit return it, otherwise execute, ``set`` and return.
- UPDATABLE: execute, ``set``, return. The operation always runs.
- EVICT: ``flush`` / ``delete`` each key / ``delete`` the key, then execute.
  Eviction happens before the operation, so a failing operation still leaves
  the entry evicted.

A sync operation with an ``async def`` backend method is rejected with
``BackendModeError`` before anything runs. Backend and operation errors are
never caught or translated. Nothing here locks: two concurrent misses on one
key both execute and the last ``set`` wins.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence
from types import MappingProxyType
from typing import Any

import structlog

from flycache.cache.keys import KeyResolver
from flycache.cache.ports.outbound import CacheBackend
from flycache.cache.types import (
    ActionKind,
    CacheOptions,
    EvictionMode,
    HitPolicy,
    Invocation,
    KeySpec,
)
from flycache.kernel.exceptions import BackendModeError, MissingCacheError

logger = structlog.get_logger("flycache.cache")

_NO_OPTIONS: CacheOptions = MappingProxyType({})


class PatternExecutor:
    """Runs caching actions against a backend supplied per call.

    Args:
        key_resolver: Derives keys for invocations without an explicit key.
        hit_policy: Decides which ``get`` results count as hits.
        default_options: Options merged under the per-call options.
    """

    def __init__(
        self,
        key_resolver: KeyResolver | None = None,
        hit_policy: HitPolicy = HitPolicy.PRESENT,
        default_options: CacheOptions | None = None,
    ) -> None:
        self._key_resolver = key_resolver or KeyResolver()
        self._hit_policy = hit_policy
        self._default_options = dict(default_options or {})

    @property
    def hit_policy(self) -> HitPolicy:
        return self._hit_policy

    @property
    def key_resolver(self) -> KeyResolver:
        return self._key_resolver

    # ------------------------------------------------------------------
    # Preamble
    # ------------------------------------------------------------------

    def resolve_key(self, invocation: Invocation, spec: KeySpec) -> Any:
        """Return the explicit key, or derive one from the invocation."""
        if spec.key is not None:
            return spec.key
        return self._key_resolver.resolve(invocation.name, invocation.arguments)

    def resolve_options(self, options: CacheOptions | None) -> CacheOptions:
        if not self._default_options:
            return options if options is not None else _NO_OPTIONS
        return {**self._default_options, **(options or {})}

    @staticmethod
    def _require_cache(cache: CacheBackend | None, invocation: Invocation) -> CacheBackend:
        if cache is None:
            raise MissingCacheError(invocation.name)
        return cache

    @staticmethod
    def _require_sync_backend(
        backend: CacheBackend, invocation: Invocation, action: ActionKind, spec: KeySpec, all_entries: bool
    ) -> None:
        """Reject ``async def`` backend methods before a sync operation runs."""
        if action is ActionKind.CACHEABLE:
            methods = ("get", "set")
        elif action is ActionKind.UPDATABLE:
            methods = ("set",)
        elif EvictionMode.resolve(all_entries, spec.keys) is EvictionMode.ALL_ENTRIES:
            methods = ("flush",)
        else:
            methods = ("delete",)
        for method in methods:
            if inspect.iscoroutinefunction(getattr(backend, method, None)):
                raise BackendModeError(invocation.name, method)

    # ------------------------------------------------------------------
    # Synchronous execution
    # ------------------------------------------------------------------

    def run(
        self,
        action: ActionKind,
        cache: CacheBackend | None,
        operation: Callable[[], Any],
        invocation: Invocation,
        spec: KeySpec | None = None,
        options: CacheOptions | None = None,
        all_entries: bool = False,
    ) -> Any:
        """Run *action* around the zero-argument *operation* and return its result."""
        backend = self._require_cache(cache, invocation)
        spec = spec or KeySpec()
        opts = self.resolve_options(options)
        self._require_sync_backend(backend, invocation, action, spec, all_entries)

        if action is ActionKind.CACHEABLE:
            key = self.resolve_key(invocation, spec)
            cached = self._sync(backend.get(key, opts), invocation, "get")
            if self._hit_policy.is_hit(cached):
                logger.debug("cache_hit", operation=invocation.name, key=key)
                return cached
            logger.debug("cache_miss", operation=invocation.name, key=key)
            value = operation()
            self._sync(backend.set(key, value, opts), invocation, "set")
            return value

        if action is ActionKind.UPDATABLE:
            key = self.resolve_key(invocation, spec)
            value = operation()
            self._sync(backend.set(key, value, opts), invocation, "set")
            logger.debug("cache_put", operation=invocation.name, key=key)
            return value

        self._evict(backend, invocation, spec, all_entries)
        return operation()

    def _evict(self, backend: CacheBackend, invocation: Invocation, spec: KeySpec, all_entries: bool) -> None:
        mode = EvictionMode.resolve(all_entries, spec.keys)
        if mode is EvictionMode.ALL_ENTRIES:
            self._sync(backend.flush(), invocation, "flush")
            logger.debug("cache_flush", operation=invocation.name)
        elif mode is EvictionMode.KEY_SET:
            assert spec.keys is not None
            self._delete_each(spec.keys, lambda k: self._sync(backend.delete(k), invocation, "delete"))
            logger.debug("cache_evict", operation=invocation.name, keys=list(spec.keys))
        else:
            key = self.resolve_key(invocation, spec)
            self._sync(backend.delete(key), invocation, "delete")
            logger.debug("cache_evict", operation=invocation.name, key=key)

    @staticmethod
    def _delete_each(keys: Sequence[Any], delete: Callable[[Any], Any]) -> None:
        """Attempt every deletion in order, then re-raise the first failure."""
        first_error: BaseException | None = None
        for key in keys:
            try:
                delete(key)
            except Exception as exc:
                logger.warning("cache_evict_failed", key=key, error=str(exc), error_type=type(exc).__name__)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    @staticmethod
    def _sync(result: Any, invocation: Invocation, method: str) -> Any:
        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise BackendModeError(invocation.name, method)
        return result

    # ------------------------------------------------------------------
    # Asynchronous execution
    # ------------------------------------------------------------------

    async def run_async(
        self,
        action: ActionKind,
        cache: CacheBackend | None,
        operation: Callable[[], Awaitable[Any]],
        invocation: Invocation,
        spec: KeySpec | None = None,
        options: CacheOptions | None = None,
        all_entries: bool = False,
    ) -> Any:
        """Coroutine counterpart of :meth:`run`.

        *operation* returns an awaitable. Backend methods may be plain or
        ``async``; awaitable results are awaited.
        """
        backend = self._require_cache(cache, invocation)
        spec = spec or KeySpec()
        opts = self.resolve_options(options)

        if action is ActionKind.CACHEABLE:
            key = self.resolve_key(invocation, spec)
            cached = await _maybe_await(backend.get(key, opts))
            if self._hit_policy.is_hit(cached):
                logger.debug("cache_hit", operation=invocation.name, key=key)
                return cached
            logger.debug("cache_miss", operation=invocation.name, key=key)
            value = await operation()
            await _maybe_await(backend.set(key, value, opts))
            return value

        if action is ActionKind.UPDATABLE:
            key = self.resolve_key(invocation, spec)
            value = await operation()
            await _maybe_await(backend.set(key, value, opts))
            logger.debug("cache_put", operation=invocation.name, key=key)
            return value

        await self._evict_async(backend, invocation, spec, all_entries)
        return await operation()

    async def _evict_async(
        self, backend: CacheBackend, invocation: Invocation, spec: KeySpec, all_entries: bool
    ) -> None:
        mode = EvictionMode.resolve(all_entries, spec.keys)
        if mode is EvictionMode.ALL_ENTRIES:
            await _maybe_await(backend.flush())
            logger.debug("cache_flush", operation=invocation.name)
        elif mode is EvictionMode.KEY_SET:
            assert spec.keys is not None
            first_error: BaseException | None = None
            for key in spec.keys:
                try:
                    await _maybe_await(backend.delete(key))
                except Exception as exc:
                    logger.warning("cache_evict_failed", key=key, error=str(exc), error_type=type(exc).__name__)
                    if first_error is None:
                        first_error = exc
            if first_error is not None:
                raise first_error
            logger.debug("cache_evict", operation=invocation.name, keys=list(spec.keys))
        else:
            key = self.resolve_key(invocation, spec)
            await _maybe_await(backend.delete(key))
            logger.debug("cache_evict", operation=invocation.name, key=key)


async def _maybe_await(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result
