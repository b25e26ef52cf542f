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
"""StructlogAdapter — renders the caching layer's events with structlog."""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

from flycache.config.properties.logging import LoggingProperties
from flycache.core.config import Config
from flycache.logging.port import CACHE_LOGGER


def shorten_cache_keys(max_length: int) -> structlog.types.Processor:
    """Build a processor that truncates ``key`` and ``keys`` fields to *max_length*.

    Derived keys are 64-character digests, which drown out the rest of a
    console line. Only string keys are shortened; a ``max_length`` of ``0``
    leaves events untouched.
    """

    def _shorten(value: Any) -> Any:
        if isinstance(value, str) and len(value) > max_length:
            return value[:max_length] + "…"
        return value

    def processor(
        logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        if max_length <= 0:
            return event_dict
        if "key" in event_dict:
            event_dict["key"] = _shorten(event_dict["key"])
        if isinstance(event_dict.get("keys"), list):
            event_dict["keys"] = [_shorten(k) for k in event_dict["keys"]]
        return event_dict

    return processor


class StructlogAdapter:
    """Logging adapter backed by structlog on top of stdlib logging.

    Reads ``flycache.logging.*``: a root level plus per-logger levels, the
    renderer (``console`` or ``json``), whether cache events are shown and how
    much of each key they render.
    """

    def __init__(self) -> None:
        self._root_level = "INFO"
        self._format = "console"
        self._module_levels: dict[str, str] = {}
        self._cache_events = False
        self._key_length = 16

    def configure(self, config: Config) -> None:
        props = config.bind(LoggingProperties)
        levels = {k: str(v).upper() for k, v in dict(props.level).items()}
        self._root_level = levels.pop("root", "INFO")
        self._format = str(props.format).lower()
        self._cache_events = bool(props.cache_events)
        self._key_length = int(props.key_length)
        # an explicit level for the cache logger wins over the cache_events switch
        if self._cache_events:
            levels.setdefault(CACHE_LOGGER, "DEBUG")
        self._module_levels = levels

        self._setup_structlog()
        for name, level in self._module_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    def cache_events_enabled(self) -> bool:
        return logging.getLogger(CACHE_LOGGER).isEnabledFor(logging.DEBUG)

    def _setup_structlog(self) -> None:
        processors: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            shorten_cache_keys(self._key_length),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.UnicodeDecoder(),
        ]
        if self._format == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer())

        structlog.configure(
            processors=processors,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=getattr(logging, self._root_level, logging.INFO),
            force=True,
        )
