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
"""Tests for PatternExecutor running synchronous operations."""

from __future__ import annotations

from typing import Any

import pytest

from flycache.cache.adapters.memory import InMemoryCache
from flycache.cache.executor import PatternExecutor
from flycache.cache.keys import KeyResolver
from flycache.cache.types import ActionKind, HitPolicy, Invocation, KeySpec
from flycache.kernel.exceptions import BackendModeError, MissingCacheError


class RecordingCache(InMemoryCache):
    """InMemoryCache that records every backend call."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[Any, ...]] = []

    def get(self, key, options=None):
        self.calls.append(("get", key, options))
        return super().get(key, options)

    def set(self, key, value, options=None):
        self.calls.append(("set", key, value, options))
        return super().set(key, value, options)

    def delete(self, key):
        self.calls.append(("delete", key))
        return super().delete(key)

    def flush(self):
        self.calls.append(("flush",))
        return super().flush()


class Counter:
    def __init__(self, value: Any = "v2") -> None:
        self.count = 0
        self.value = value

    def __call__(self) -> Any:
        self.count += 1
        return self.value


class AsyncCache:
    async def get(self, key, options):
        return None

    async def set(self, key, value, options):
        return value

    async def delete(self, key):
        return True

    async def flush(self):
        return None


INVOCATION = Invocation("app.users.get_user", (42,))


class TestCacheable:
    def test_hit_skips_operation(self):
        cache = InMemoryCache()
        cache.set("k", "v1")
        op = Counter()

        result = PatternExecutor().run(ActionKind.CACHEABLE, cache, op, INVOCATION, KeySpec(key="k"))

        assert result == "v1"
        assert op.count == 0

    def test_miss_executes_and_stores(self):
        cache = InMemoryCache()
        op = Counter("v2")
        executor = PatternExecutor()

        first = executor.run(ActionKind.CACHEABLE, cache, op, INVOCATION, KeySpec(key="k"))
        second = executor.run(ActionKind.CACHEABLE, cache, op, INVOCATION, KeySpec(key="k"))

        assert first == second == "v2"
        assert cache.get("k") == "v2"
        assert op.count == 1

    def test_derives_key_when_none_given(self):
        cache = InMemoryCache()
        executor = PatternExecutor()

        executor.run(ActionKind.CACHEABLE, cache, Counter("v"), INVOCATION)

        derived = KeyResolver().resolve(INVOCATION.name, INVOCATION.arguments)
        assert cache.get(derived) == "v"

    def test_options_passed_unmodified(self):
        cache = RecordingCache()
        opts = {"ttl": 60, "tag": "users"}

        PatternExecutor().run(ActionKind.CACHEABLE, cache, Counter("v"), INVOCATION, KeySpec(key="k"), opts)

        assert cache.calls == [("get", "k", opts), ("set", "k", "v", opts)]

    def test_options_default_to_empty(self):
        cache = RecordingCache()

        PatternExecutor().run(ActionKind.CACHEABLE, cache, Counter("v"), INVOCATION, KeySpec(key="k"))

        assert cache.calls[0] == ("get", "k", {})

    def test_default_options_merged_under_call_options(self):
        cache = RecordingCache()
        executor = PatternExecutor(default_options={"ttl": 300, "tag": "default"})

        executor.run(ActionKind.CACHEABLE, cache, Counter("v"), INVOCATION, KeySpec(key="k"), {"ttl": 5})

        assert cache.calls[0] == ("get", "k", {"ttl": 5, "tag": "default"})

    @pytest.mark.parametrize("falsy", [0, False, "", []])
    def test_falsy_value_is_a_hit_by_default(self, falsy):
        cache = InMemoryCache()
        cache.set("k", falsy)
        op = Counter("fresh")

        result = PatternExecutor().run(ActionKind.CACHEABLE, cache, op, INVOCATION, KeySpec(key="k"))

        assert result == falsy
        assert op.count == 0

    @pytest.mark.parametrize("falsy", [0, False, "", []])
    def test_falsy_value_is_a_miss_under_truthy_policy(self, falsy):
        cache = InMemoryCache()
        cache.set("k", falsy)
        op = Counter("fresh")
        executor = PatternExecutor(hit_policy=HitPolicy.TRUTHY)

        result = executor.run(ActionKind.CACHEABLE, cache, op, INVOCATION, KeySpec(key="k"))

        assert result == "fresh"
        assert op.count == 1
        assert cache.get("k") == "fresh"

    def test_none_result_is_stored_but_never_hits(self):
        cache = RecordingCache()
        op = Counter(None)
        executor = PatternExecutor()

        executor.run(ActionKind.CACHEABLE, cache, op, INVOCATION, KeySpec(key="k"))
        executor.run(ActionKind.CACHEABLE, cache, op, INVOCATION, KeySpec(key="k"))

        assert op.count == 2

    def test_backend_error_propagates(self):
        class BrokenCache(InMemoryCache):
            def get(self, key, options=None):
                raise ConnectionError("down")

        op = Counter()
        with pytest.raises(ConnectionError, match="down"):
            PatternExecutor().run(ActionKind.CACHEABLE, BrokenCache(), op, INVOCATION, KeySpec(key="k"))
        assert op.count == 0

    def test_operation_error_propagates_and_nothing_is_stored(self):
        cache = InMemoryCache()

        def boom():
            raise LookupError("no such user")

        with pytest.raises(LookupError):
            PatternExecutor().run(ActionKind.CACHEABLE, cache, boom, INVOCATION, KeySpec(key="k"))
        assert cache.size() == 0


class TestUpdatable:
    def test_always_executes_and_overwrites(self):
        cache = InMemoryCache()
        cache.set("k", "old")
        op = Counter("new")

        result = PatternExecutor().run(ActionKind.UPDATABLE, cache, op, INVOCATION, KeySpec(key="k"))

        assert result == "new"
        assert op.count == 1
        assert cache.get("k") == "new"

    def test_never_reads_the_cache(self):
        cache = RecordingCache()

        PatternExecutor().run(ActionKind.UPDATABLE, cache, Counter("v"), INVOCATION, KeySpec(key="k"), {"ttl": 1})

        assert cache.calls == [("set", "k", "v", {"ttl": 1})]

    def test_operation_error_leaves_cache_untouched(self):
        cache = InMemoryCache()
        cache.set("k", "old")

        def boom():
            raise RuntimeError("write failed")

        with pytest.raises(RuntimeError):
            PatternExecutor().run(ActionKind.UPDATABLE, cache, boom, INVOCATION, KeySpec(key="k"))
        assert cache.get("k") == "old"


class TestEvict:
    def test_single_key_removed_and_operation_runs_once(self):
        cache = InMemoryCache()
        cache.set("k", "v")
        op = Counter("done")

        result = PatternExecutor().run(ActionKind.EVICT, cache, op, INVOCATION, KeySpec(key="k"))

        assert result == "done"
        assert cache.get("k") is None
        assert op.count == 1

    def test_eviction_happens_before_operation(self):
        cache = InMemoryCache()
        cache.set("k", "v")
        seen: list[Any] = []

        def op():
            seen.append(cache.get("k"))

        PatternExecutor().run(ActionKind.EVICT, cache, op, INVOCATION, KeySpec(key="k"))

        assert seen == [None]

    def test_entry_stays_evicted_when_operation_fails(self):
        cache = InMemoryCache()
        cache.set("k", "v")

        def boom():
            raise RuntimeError("delete failed")

        with pytest.raises(RuntimeError):
            PatternExecutor().run(ActionKind.EVICT, cache, boom, INVOCATION, KeySpec(key="k"))
        assert cache.get("k") is None

    def test_key_set_supersedes_single_key(self):
        cache = RecordingCache()
        for k in ("a", "b", "single"):
            cache.set(k, k)
        cache.calls.clear()

        PatternExecutor().run(ActionKind.EVICT, cache, Counter(), INVOCATION, KeySpec(key="single", keys=["a", "b"]))

        assert cache.calls == [("delete", "a"), ("delete", "b")]
        assert cache.get("single") == "single"

    def test_empty_key_set_falls_back_to_single_key(self):
        cache = RecordingCache()

        PatternExecutor().run(ActionKind.EVICT, cache, Counter(), INVOCATION, KeySpec(key="single", keys=[]))

        assert cache.calls == [("delete", "single")]

    def test_derived_key_when_nothing_given(self):
        cache = RecordingCache()

        PatternExecutor().run(ActionKind.EVICT, cache, Counter(), INVOCATION)

        derived = KeyResolver().resolve(INVOCATION.name, INVOCATION.arguments)
        assert cache.calls == [("delete", derived)]

    def test_all_entries_flushes_and_ignores_keys(self):
        cache = RecordingCache()
        for k in ("user:1", "user:2", "session:abc"):
            cache.set(k, k)
        cache.calls.clear()

        PatternExecutor().run(
            ActionKind.EVICT,
            cache,
            Counter(),
            INVOCATION,
            KeySpec(key="user:1", keys=["user:2"]),
            all_entries=True,
        )

        assert cache.calls == [("flush",)]
        assert cache.size() == 0

    def test_key_set_attempts_every_delete_then_raises_first_error(self):
        class FlakyCache(RecordingCache):
            def delete(self, key):
                super().delete(key)
                if key in ("a", "c"):
                    raise ConnectionError(f"lost {key}")
                return True

        cache = FlakyCache()
        op = Counter()

        with pytest.raises(ConnectionError, match="lost a"):
            PatternExecutor().run(ActionKind.EVICT, cache, op, INVOCATION, KeySpec(keys=["a", "b", "c"]))

        assert cache.calls == [("delete", "a"), ("delete", "b"), ("delete", "c")]
        assert op.count == 0


class TestPreamble:
    @pytest.mark.parametrize("action", list(ActionKind))
    def test_missing_cache_fails_before_operation(self, action):
        op = Counter()

        with pytest.raises(MissingCacheError) as exc_info:
            PatternExecutor().run(action, None, op, INVOCATION, KeySpec(key="k"))

        assert op.count == 0
        assert exc_info.value.code == "CACHE_MISSING"
        assert exc_info.value.context == {"operation": INVOCATION.name}

    def test_async_backend_from_sync_operation_is_rejected(self):
        op = Counter()
        with pytest.raises(BackendModeError) as exc_info:
            PatternExecutor().run(ActionKind.CACHEABLE, AsyncCache(), op, INVOCATION, KeySpec(key="k"))

        assert exc_info.value.context["method"] == "get"
        assert op.count == 0

    def test_async_backend_rejected_before_updatable_operation_runs(self):
        op = Counter()
        with pytest.raises(BackendModeError) as exc_info:
            PatternExecutor().run(ActionKind.UPDATABLE, AsyncCache(), op, INVOCATION, KeySpec(key="k"))

        assert exc_info.value.context["method"] == "set"
        assert op.count == 0

    @pytest.mark.parametrize(
        ("spec", "all_entries", "method"),
        [
            (KeySpec(key="k"), False, "delete"),
            (KeySpec(keys=["a", "b"]), False, "delete"),
            (KeySpec(), True, "flush"),
        ],
    )
    def test_async_backend_rejected_before_evict_operation_runs(self, spec, all_entries, method):
        op = Counter()
        with pytest.raises(BackendModeError) as exc_info:
            PatternExecutor().run(ActionKind.EVICT, AsyncCache(), op, INVOCATION, spec, all_entries=all_entries)

        assert exc_info.value.context["method"] == method
        assert op.count == 0

    def test_sync_methods_returning_awaitables_are_still_rejected(self):
        class LazyCache(InMemoryCache):
            def set(self, key, value, options=None):
                return AsyncCache().set(key, value, options)

        op = Counter()
        with pytest.raises(BackendModeError) as exc_info:
            PatternExecutor().run(ActionKind.UPDATABLE, LazyCache(), op, INVOCATION, KeySpec(key="k"))

        assert exc_info.value.context["method"] == "set"

    def test_resolve_key_prefers_explicit_key(self):
        executor = PatternExecutor()
        assert executor.resolve_key(INVOCATION, KeySpec(key=("User", 42))) == ("User", 42)

    def test_prefixed_resolver(self):
        executor = PatternExecutor(key_resolver=KeyResolver(prefix="users"))
        key = executor.resolve_key(INVOCATION, KeySpec())
        assert key.startswith("users:")
