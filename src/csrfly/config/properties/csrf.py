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
"""CSRF filter configuration properties."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from csrfly.core.config import config_properties
from csrfly.security.csrf import (
    DEFAULT_CONTEXT_KEY,
    DEFAULT_COOKIE_MAX_AGE,
    DEFAULT_COOKIE_NAME,
    DEFAULT_COOKIE_SAME_SITE,
    DEFAULT_TOKEN_LENGTH,
    DEFAULT_TOKEN_LOOKUP,
    CsrfConfig,
)


@config_properties(prefix="csrfly.security.csrf")
@dataclass
class CsrfProperties:
    """Configuration for the CSRF filter (csrfly.security.csrf.*).

    The bypass predicate is code-only; pass it to :meth:`to_config`.
    With ``enabled`` false, :func:`~csrfly.web.adapters.starlette.middleware.csrf_middleware`
    leaves the filter out of the chain.
    """

    enabled: bool = True
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

    def to_config(self, bypass: Callable[[Any], bool] | None = None) -> CsrfConfig:
        return CsrfConfig(
            bypass=bypass,
            token_length=self.token_length,
            token_lookup=self.token_lookup,
            context_key=self.context_key,
            cookie_name=self.cookie_name,
            cookie_domain=self.cookie_domain,
            cookie_path=self.cookie_path,
            cookie_max_age=self.cookie_max_age,
            cookie_secure=self.cookie_secure,
            cookie_http_only=self.cookie_http_only,
            cookie_same_site=self.cookie_same_site,
        )
