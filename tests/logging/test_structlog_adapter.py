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
"""Tests for StructlogAdapter — default LoggingPort implementation."""

import logging

from flycache.core.config import Config
from flycache.logging.port import LoggingPort
from flycache.logging.structlog_adapter import StructlogAdapter, shorten_cache_keys


class TestStructlogAdapterConformance:
    def test_implements_logging_port(self):
        assert isinstance(StructlogAdapter(), LoggingPort)


class TestStructlogAdapterConfigure:
    def test_configure_with_defaults(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        assert adapter._root_level == "INFO"
        assert adapter._format == "console"
        assert adapter._module_levels == {}
        assert adapter._cache_events is False
        assert adapter._key_length == 16

    def test_configure_reads_root_level(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"flycache": {"logging": {"level": {"root": "debug"}}}}))
        assert adapter._root_level == "DEBUG"

    def test_configure_reads_format(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"flycache": {"logging": {"format": "JSON"}}}))
        assert adapter._format == "json"

    def test_configure_reads_per_module_levels(self):
        adapter = StructlogAdapter()
        config = Config({"flycache": {"logging": {"level": {"root": "INFO", "flycache.cache": "DEBUG"}}}})
        adapter.configure(config)
        assert adapter._module_levels == {"flycache.cache": "DEBUG"}
        assert logging.getLogger("flycache.cache").level == logging.DEBUG


class TestStructlogAdapterGetLogger:
    def test_get_logger_returns_bound_logger(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        logger = adapter.get_logger("flycache.test")
        assert callable(getattr(logger, "info", None))
        assert callable(getattr(logger, "debug", None))


class TestStructlogAdapterSetLevel:
    def test_set_level_updates_module_level(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        adapter.set_level("flycache.cache.auto", "WARNING")
        assert logging.getLogger("flycache.cache.auto").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        adapter = StructlogAdapter()
        adapter.set_level("flycache.unknown", "chatty")
        assert logging.getLogger("flycache.unknown").level == logging.INFO


class TestCacheEvents:
    def test_cache_events_turn_on_cache_debug_logging(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"flycache": {"logging": {"cache_events": True}}}))
        assert adapter._module_levels == {"flycache.cache": "DEBUG"}
        assert adapter.cache_events_enabled() is True

    def test_explicit_cache_level_wins_over_switch(self):
        adapter = StructlogAdapter()
        config = Config({"flycache": {"logging": {"cache_events": True, "level": {"flycache.cache": "WARNING"}}}})
        adapter.configure(config)
        assert logging.getLogger("flycache.cache").level == logging.WARNING
        assert adapter.cache_events_enabled() is False

    def test_cache_events_env_override(self, monkeypatch):
        monkeypatch.setenv("FLYCACHE_LOGGING_CACHE_EVENTS", "true")
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        assert adapter._cache_events is True


class TestShortenCacheKeys:
    def test_long_string_key_is_truncated(self):
        event = shorten_cache_keys(8)(None, "debug", {"event": "cache_hit", "key": "a" * 64})
        assert event["key"] == "aaaaaaaa…"

    def test_key_lists_are_truncated(self):
        event = shorten_cache_keys(4)(None, "debug", {"event": "cache_evict", "keys": ["user:1", "ab"]})
        assert event["keys"] == ["user…", "ab"]

    def test_non_string_keys_untouched(self):
        event = shorten_cache_keys(4)(None, "debug", {"event": "cache_put", "key": ("User", 123456)})
        assert event["key"] == ("User", 123456)

    def test_zero_length_disables_truncation(self):
        event = shorten_cache_keys(0)(None, "debug", {"event": "cache_hit", "key": "a" * 64})
        assert event["key"] == "a" * 64

    def test_key_length_read_from_config(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({"flycache": {"logging": {"key_length": 0}}}))
        assert adapter._key_length == 0
