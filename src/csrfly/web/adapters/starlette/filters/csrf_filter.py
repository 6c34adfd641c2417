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
"""CsrfFilter — synchronizer token CSRF protection.

For every request the filter resolves the *expected* token: the value of the
CSRF cookie, or a freshly generated token when the cookie is missing.

* **Safe methods** (GET, HEAD, OPTIONS, TRACE) are not validated.
* **Unsafe methods** must echo the expected token through the configured
  lookup (header, form field, query parameter or path parameter). A missing
  token yields ``400 Bad Request``; a different token yields
  ``403 Forbidden``. Both responses have an empty body.

Accepted requests get the token under ``request.state.<context_key>`` and the
response re-issues the same cookie value with ``Vary: Cookie``. The token is
not rotated after validation.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog
from starlette.responses import Response

from csrfly.config.properties.csrf import CsrfProperties
from csrfly.core.config import Config
from csrfly.kernel.exceptions import CsrfException, ExtractionError, ValidationMismatch
from csrfly.security.csrf import (
    DEFAULT_CONTEXT_KEY,
    SAFE_METHODS,
    CsrfConfig,
    resolve_config,
    resolve_expected_token,
    validate_csrf_token,
)
from csrfly.security.extractors import TokenLookup, build_extractor
from csrfly.web.filters import OncePerRequestFilter
from csrfly.web.ordering import HIGHEST_PRECEDENCE, order
from csrfly.web.ports.filter import CallNext

logger = structlog.get_logger("csrfly.security")


@order(HIGHEST_PRECEDENCE + 500)
class CsrfFilter(OncePerRequestFilter):
    """Synchronizer token CSRF filter.

    Configuration is resolved and the extractor selected once, here; the
    instance holds no per-request state and may serve concurrent requests.
    """

    def __init__(self, config: CsrfConfig | None = None) -> None:
        self._config = resolve_config(config)
        self._lookup = TokenLookup.parse(self._config.token_lookup)
        self._extract = build_extractor(self._lookup)

    @classmethod
    def from_config(cls, config: Config, bypass: Callable[[Any], bool] | None = None) -> CsrfFilter:
        """Build a filter from ``csrfly.security.csrf.*`` properties."""
        return cls(config.bind(CsrfProperties).to_config(bypass=bypass))

    @property
    def config(self) -> CsrfConfig:
        return self._config

    @property
    def lookup(self) -> TokenLookup:
        return self._lookup

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        cfg = self._config

        if cfg.bypass is not None and cfg.bypass(request):
            return await call_next(request)

        token, issued = resolve_expected_token(request.cookies.get(cfg.cookie_name), cfg.token_length)
        if issued:
            logger.debug("csrf_token_issued", path=request.url.path)

        if request.method not in SAFE_METHODS:
            try:
                await self._validate(request, token)
            except CsrfException as exc:
                logger.info(
                    "csrf_token_missing" if isinstance(exc, ExtractionError) else "csrf_token_mismatch",
                    method=request.method,
                    path=request.url.path,
                    source=str(self._lookup.source),
                    code=exc.code,
                )
                return Response(status_code=exc.status_code)

        setattr(request.state, cfg.context_key, token)
        response = await call_next(request)
        self._commit(response, token)
        return response

    async def _validate(self, request: Any, expected: str) -> None:
        claimed = await self._extract(request)
        if not validate_csrf_token(expected, claimed):
            raise ValidationMismatch("invalid csrf token", context={"source": str(self._lookup.source)})

    def _commit(self, response: Any, token: str) -> None:
        cfg = self._config
        response.set_cookie(
            key=cfg.cookie_name,
            value=token,
            expires=datetime.now(UTC) + timedelta(seconds=cfg.cookie_max_age),
            path=cfg.cookie_path or None,
            domain=cfg.cookie_domain or None,
            secure=cfg.cookie_secure,
            httponly=cfg.cookie_http_only,
            samesite=cfg.cookie_same_site or None,  # type: ignore[arg-type]
        )
        response.headers.add_vary_header("Cookie")


def csrf_token(request: Any, context_key: str = DEFAULT_CONTEXT_KEY) -> str | None:
    """Return the CSRF token stored for *request*, or ``None`` outside the filter."""
    return getattr(request.state, context_key, None)
