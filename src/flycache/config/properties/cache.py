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
"""Cache subsystem configuration properties."""

from __future__ import annotations

from dataclasses import dataclass, field

from flycache.core.config import config_properties


@config_properties(prefix="flycache.cache")
@dataclass
class CacheProperties:
    """Configuration for the cache subsystem (flycache.cache.*).

    ``ttl`` is the default time-to-live in seconds merged under per-call
    options; ``0`` disables it. ``hit_policy`` is ``present`` or ``truthy``.
    """

    enabled: bool = True
    provider: str = "auto"
    redis: dict = field(default_factory=lambda: {"url": "redis://localhost:6379/0"})
    ttl: int = 0
    hit_policy: str = "present"
    key_prefix: str = ""
