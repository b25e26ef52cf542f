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
"""Exception hierarchy for flycache.

Only wiring problems are raised by flycache itself. Failures raised by a
cache backend or by the wrapped operation are never translated: they reach
the caller exactly as they were raised.

Categories:
- ConfigurationException: the caching layer was wired incorrectly
- InfrastructureException: a bundled adapter could not reach its store
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class FlyCacheException(Exception):
    """Base exception for all flycache errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CACHE_MISSING").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(FlyCacheException):
    """The caching layer was set up incorrectly. Never retried."""


class MissingCacheError(ConfigurationException):
    """No cache backend was supplied for a caching action."""

    def __init__(self, operation: str | None = None) -> None:
        target = f" for '{operation}'" if operation else ""
        super().__init__(
            f"expected a cache backend to be given{target}",
            code="CACHE_MISSING",
            context={"operation": operation} if operation else None,
        )


class BackendModeError(ConfigurationException):
    """An asynchronous backend was used from a synchronous operation."""

    def __init__(self, operation: str, method: str) -> None:
        super().__init__(
            f"cache backend returned an awaitable from '{method}' while running "
            f"synchronous operation '{operation}'; decorate a coroutine function instead",
            code="CACHE_BACKEND_MODE",
            context={"operation": operation, "method": method},
        )


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(FlyCacheException):
    """A bundled cache adapter failed its own lifecycle checks."""
