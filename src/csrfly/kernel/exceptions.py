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
"""csrfly exception hierarchy.

All errors raised by csrfly derive from :class:`CsrflyException`, so a host
application can catch the base class or target a specific subclass.
"""

from __future__ import annotations

# =============================================================================
# Base Exception
# =============================================================================


class CsrflyException(Exception):
    """Base exception for all csrfly errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CSRF_TOKEN_MISSING").
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
# Security Exceptions
# =============================================================================


class SecurityException(CsrflyException):
    """Request rejected for security reasons."""


class CsrfException(SecurityException):
    """CSRF protocol failure, mapped to an HTTP status by the filter.

    Never carries token values in its message or context.
    """

    status_code: int = 403
    default_code: str = "CSRF_ERROR"

    def __init__(self, message: str, context: dict | None = None) -> None:
        super().__init__(message, code=self.default_code, context=context)


class ExtractionError(CsrfException):
    """The claimed token is absent or empty in the configured source."""

    status_code = 400
    default_code = "CSRF_TOKEN_MISSING"


class ValidationMismatch(CsrfException):
    """The claimed token does not equal the expected token."""

    status_code = 403
    default_code = "CSRF_TOKEN_INVALID"
