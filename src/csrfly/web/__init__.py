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
"""csrfly web — filter abstractions and the default Starlette adapter."""

from csrfly.web.adapters.starlette import (
    CsrfFilter,
    WebFilterChainMiddleware,
    csrf_middleware,
    csrf_token,
)
from csrfly.web.filters import OncePerRequestFilter
from csrfly.web.ordering import HIGHEST_PRECEDENCE, LOWEST_PRECEDENCE, get_order, order
from csrfly.web.ports.filter import CallNext, WebFilter

__all__ = [
    # Framework-agnostic
    "CallNext",
    "HIGHEST_PRECEDENCE",
    "LOWEST_PRECEDENCE",
    "OncePerRequestFilter",
    "WebFilter",
    "get_order",
    "order",
    # Default adapter (Starlette)
    "CsrfFilter",
    "WebFilterChainMiddleware",
    "csrf_middleware",
    "csrf_token",
]
