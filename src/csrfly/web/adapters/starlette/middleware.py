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
"""Helpers for mounting the CSRF filter on a Starlette application."""

from __future__ import annotations

import structlog
from starlette.middleware import Middleware

from csrfly.config.properties.csrf import CsrfProperties
from csrfly.core.config import Config
from csrfly.security.csrf import CsrfConfig
from csrfly.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from csrfly.web.adapters.starlette.filters.csrf_filter import CsrfFilter
from csrfly.web.ports.filter import WebFilter

logger = structlog.get_logger("csrfly.security")


def csrf_middleware(
    config: CsrfConfig | Config | None = None,
    *extra_filters: WebFilter,
) -> Middleware:
    """Return a ``Middleware`` entry running a :class:`CsrfFilter` chain.

    Pass it to ``Starlette(middleware=[...])``, or to a ``Route`` /
    ``Mount`` when the token lookup is ``param:<name>``: path parameters
    are only known once routing has matched.

    A :class:`Config` with ``csrfly.security.csrf.enabled`` set to false
    yields a chain of *extra_filters* only.
    """
    filters: list[WebFilter] = list(extra_filters)
    if isinstance(config, Config):
        properties = config.bind(CsrfProperties)
        if properties.enabled:
            filters.insert(0, CsrfFilter(properties.to_config()))
        else:
            logger.info("csrf_protection_disabled")
    else:
        filters.insert(0, CsrfFilter(config))
    return Middleware(WebFilterChainMiddleware, filters=filters)
