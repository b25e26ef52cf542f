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
"""flycache cache — read-through and write-through patterns over a pluggable backend."""

from flycache.cache.adapters.memory import InMemoryCache
from flycache.cache.adapters.redis import RedisCacheAdapter
from flycache.cache.decorators import cache_evict, cache_put, cacheable, evict, updatable
from flycache.cache.executor import PatternExecutor
from flycache.cache.keys import KeyResolver, default_key
from flycache.cache.ports.outbound import CacheBackend
from flycache.cache.types import ActionKind, EvictionMode, HitPolicy, Invocation, KeySpec

__all__ = [
    "ActionKind",
    "CacheBackend",
    "EvictionMode",
    "HitPolicy",
    "InMemoryCache",
    "Invocation",
    "KeyResolver",
    "KeySpec",
    "PatternExecutor",
    "RedisCacheAdapter",
    "cache_evict",
    "cache_put",
    "cacheable",
    "default_key",
    "evict",
    "updatable",
]
