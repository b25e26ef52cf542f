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
"""Declarative caching decorators.

Key expressions are evaluated on every call:

- a ``str`` containing ``{`` is a template expanded with the bound arguments,
  e.g. ``key="user:{user_id}"``;
- a callable is called with the wrapped function's ``*args, **kwargs``;
- anything else is used as the key literally.

A key that evaluates to ``None`` falls back to the derived default key.
Both plain functions and coroutine functions can be decorated.

Usage::

    @cacheable(cache, key="user:{user_id}", opts={"ttl": 3600})
    def get_user(user_id: int) -> User: ...

    @updatable(cache, key=lambda user, attrs: ("User", user.id))
    def update_user(user: User, attrs: dict) -> User: ...

    @evict(cache, keys=["user:{user.id}", "user:{user.username}"])
    def delete_user(user: User) -> None: ...
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Sequence
from datetime import timedelta
from typing import Any, TypeVar

from flycache.cache.executor import PatternExecutor
from flycache.cache.ports.outbound import CacheBackend
from flycache.cache.types import ActionKind, CacheOptions, EvictionMode, Invocation, KeySpec, operation_name
from flycache.kernel.exceptions import MissingCacheError

F = TypeVar("F", bound=Callable[..., Any])

_default_executor = PatternExecutor()


def _evaluate(expr: Any, sig: inspect.Signature, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
    if expr is None:
        return None
    if callable(expr):
        return expr(*args, **kwargs)
    if isinstance(expr, str) and "{" in expr:
        bound = sig.bind(*args, **kwargs)
        bound.apply_defaults()
        return expr.format(**bound.arguments)
    return expr


def _evaluate_keys(
    keys: Sequence[Any] | Callable[..., Sequence[Any]] | None,
    sig: inspect.Signature,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> tuple[Any, ...] | None:
    if keys is None:
        return None
    if callable(keys):
        return tuple(keys(*args, **kwargs) or ())
    return tuple(_evaluate(k, sig, args, kwargs) for k in keys)


def _caching_action(
    action: ActionKind,
    cache: CacheBackend | None,
    key: Any,
    keys: Sequence[Any] | Callable[..., Sequence[Any]] | None,
    options: CacheOptions | None,
    all_entries: bool,
    executor: PatternExecutor | None,
) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        if cache is None:
            raise MissingCacheError(operation_name(func))

        runner = executor or _default_executor
        sig = inspect.signature(func)

        def prepare(args: tuple[Any, ...], kwargs: dict[str, Any]) -> tuple[Invocation, KeySpec]:
            invocation = Invocation.of(func, args, kwargs)
            if action is not ActionKind.EVICT:
                return invocation, KeySpec(key=_evaluate(key, sig, args, kwargs))

            # only the expressions of the winning eviction mode are evaluated
            if all_entries:
                return invocation, KeySpec()
            evicted = _evaluate_keys(keys, sig, args, kwargs)
            if EvictionMode.resolve(False, evicted) is EvictionMode.KEY_SET:
                return invocation, KeySpec(keys=evicted)
            return invocation, KeySpec(key=_evaluate(key, sig, args, kwargs))

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                invocation, spec = prepare(args, kwargs)
                return await runner.run_async(
                    action,
                    cache,
                    lambda: func(*args, **kwargs),
                    invocation,
                    spec,
                    options,
                    all_entries,
                )

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            invocation, spec = prepare(args, kwargs)
            return runner.run(
                action,
                cache,
                lambda: func(*args, **kwargs),
                invocation,
                spec,
                options,
                all_entries,
            )

        return wrapper  # type: ignore[return-value]

    return decorator


def _with_ttl(opts: CacheOptions | None, ttl: timedelta | int | None) -> CacheOptions | None:
    if ttl is None:
        return opts
    return {**(opts or {}), "ttl": ttl}


def cacheable(
    cache: CacheBackend | None,
    key: Any = None,
    *,
    opts: CacheOptions | None = None,
    ttl: timedelta | int | None = None,
    executor: PatternExecutor | None = None,
) -> Callable[[F], F]:
    """Read-through: return the cached value, or execute and cache on a miss.

    Args:
        cache: Backend to use. Required.
        key: Key expression. Derived from the function and arguments if omitted.
        opts: Backend options passed unmodified to ``get`` and ``set``.
        ttl: Shorthand for ``opts={"ttl": ttl}``.
        executor: Executor carrying the hit policy and key resolver.
    """
    return _caching_action(ActionKind.CACHEABLE, cache, key, None, _with_ttl(opts, ttl), False, executor)


def updatable(
    cache: CacheBackend | None,
    key: Any = None,
    *,
    opts: CacheOptions | None = None,
    ttl: timedelta | int | None = None,
    executor: PatternExecutor | None = None,
) -> Callable[[F], F]:
    """Write-through: always execute the function, then cache its result.

    Unlike :func:`cacheable`, the decorated function is always invoked, so
    the cached value is refreshed on every call.
    """
    return _caching_action(ActionKind.UPDATABLE, cache, key, None, _with_ttl(opts, ttl), False, executor)


def evict(
    cache: CacheBackend | None,
    key: Any = None,
    *,
    keys: Sequence[Any] | Callable[..., Sequence[Any]] | None = None,
    all_entries: bool = False,
    executor: PatternExecutor | None = None,
) -> Callable[[F], F]:
    """Write-through with invalidation: evict entries, then execute the function.

    Args:
        cache: Backend to use. Required.
        key: Key expression for a single entry.
        keys: Key expressions to evict in order. A non-empty list supersedes *key*.
        all_entries: Flush the whole cache instead. Supersedes *key* and *keys*.
        executor: Executor carrying the key resolver.
    """
    return _caching_action(ActionKind.EVICT, cache, key, keys, None, all_entries, executor)


cache_put = updatable
cache_evict = evict
