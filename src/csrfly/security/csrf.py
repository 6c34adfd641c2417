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
"""CSRF token utilities — synchronizer token pattern.

Provides the filter configuration value object, token generation, expected
token resolution and timing-safe validation.

The cookie value is reused verbatim as the expected token. It is not signed:
a cross-site attacker cannot read the cookie, so it cannot echo the value
back through the header/form/query/param channel.
"""

from __future__ import annotations

import dataclasses
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger("csrfly.security")


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
SAFE_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})
"""HTTP methods that do not require CSRF validation (RFC 7231)."""

DEFAULT_TOKEN_LENGTH: int = 32
DEFAULT_TOKEN_LOOKUP: str = "header:X-CSRF-Token"
DEFAULT_CONTEXT_KEY: str = "csrf"
DEFAULT_COOKIE_NAME: str = "_csrf"
DEFAULT_COOKIE_MAX_AGE: int = 86400
DEFAULT_COOKIE_SAME_SITE: str = "lax"
SAME_SITE_VALUES: frozenset[str] = frozenset({"strict", "lax", "none"})


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CsrfConfig:
    """Options for :class:`~csrfly.web.adapters.starlette.filters.csrf_filter.CsrfFilter`.

    Zero values (``0`` and ``""``) are replaced with defaults by
    :func:`resolve_config`, so ``CsrfConfig()`` is a usable configuration.
    A negative ``token_length`` or an unknown ``cookie_same_site`` also
    falls back to the default, with a warning.

    Attributes:
        bypass: Predicate over the request; when it returns ``True`` the
            filter passes the request through untouched.
        token_length: Bytes of randomness in generated tokens.
        token_lookup: ``"<source>:<key>"`` where source is one of
            ``header``, ``form``, ``query`` or ``param``.
        context_key: Attribute of ``request.state`` that receives the token.
        cookie_name: Name of the cookie carrying the token.
        cookie_domain: Cookie ``Domain``; omitted when empty.
        cookie_path: Cookie ``Path``; omitted when empty.
        cookie_max_age: Seconds until the cookie expires.
        cookie_secure: Cookie ``Secure`` flag.
        cookie_http_only: Cookie ``HttpOnly`` flag.
        cookie_same_site: Cookie ``SameSite``; omitted when empty.
    """

    bypass: Callable[[Any], bool] | None = None
    token_length: int = DEFAULT_TOKEN_LENGTH
    token_lookup: str = DEFAULT_TOKEN_LOOKUP
    context_key: str = DEFAULT_CONTEXT_KEY
    cookie_name: str = DEFAULT_COOKIE_NAME
    cookie_domain: str = ""
    cookie_path: str = ""
    cookie_max_age: int = DEFAULT_COOKIE_MAX_AGE
    cookie_secure: bool = False
    cookie_http_only: bool = False
    cookie_same_site: str = DEFAULT_COOKIE_SAME_SITE


def resolve_config(config: CsrfConfig | None = None) -> CsrfConfig:
    """Return *config* with zero-valued or invalid options replaced by their defaults."""
    cfg = config or CsrfConfig()

    token_length = cfg.token_length
    if token_length < 0:
        logger.warning(
            "csrf_config_fallback", option="token_length", value=token_length, fallback=DEFAULT_TOKEN_LENGTH
        )
        token_length = DEFAULT_TOKEN_LENGTH

    same_site = cfg.cookie_same_site.lower()
    if same_site and same_site not in SAME_SITE_VALUES:
        logger.warning(
            "csrf_config_fallback",
            option="cookie_same_site",
            value=cfg.cookie_same_site,
            fallback=DEFAULT_COOKIE_SAME_SITE,
        )
        same_site = DEFAULT_COOKIE_SAME_SITE

    return dataclasses.replace(
        cfg,
        token_length=token_length or DEFAULT_TOKEN_LENGTH,
        token_lookup=cfg.token_lookup or DEFAULT_TOKEN_LOOKUP,
        context_key=cfg.context_key or DEFAULT_CONTEXT_KEY,
        cookie_name=cfg.cookie_name or DEFAULT_COOKIE_NAME,
        cookie_max_age=cfg.cookie_max_age or DEFAULT_COOKIE_MAX_AGE,
        cookie_same_site=same_site,
    )


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------
def generate_csrf_token(length: int = DEFAULT_TOKEN_LENGTH) -> str:
    """Generate a cryptographically-secure CSRF token.

    Args:
        length: Number of random bytes. The result is URL-safe base64,
            about 1.3 characters per byte (43 characters for 32 bytes).
    """
    return secrets.token_urlsafe(length)


def resolve_expected_token(cookie_value: str | None, length: int = DEFAULT_TOKEN_LENGTH) -> tuple[str, bool]:
    """Return the expected token for a request and whether it was just generated.

    An existing cookie value is reused as is; its format is not checked.
    """
    if cookie_value:
        return cookie_value, False
    return generate_csrf_token(length), True


def validate_csrf_token(expected_token: str, claimed_token: str) -> bool:
    """Compare two tokens with :func:`secrets.compare_digest`.

    The running time does not depend on the position of the first
    differing byte. Tokens are compared as UTF-8 bytes so non-ASCII input
    cannot raise.
    """
    return secrets.compare_digest(expected_token.encode("utf-8"), claimed_token.encode("utf-8"))
