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
"""Claimed-token extractors.

A token lookup such as ``"form:csrf_token"`` is parsed once into a
:class:`TokenLookup` and turned into an :data:`Extractor` by
:func:`build_extractor`. Extractors read a single request surface and raise
:class:`~csrfly.kernel.exceptions.ExtractionError` when the value is absent
or empty.

Requests are accessed by attribute (``headers``, ``query_params``,
``path_params``, ``form()``) so any Starlette-compatible request works.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import structlog
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from csrfly.kernel.exceptions import ExtractionError
from csrfly.security.csrf import DEFAULT_TOKEN_LOOKUP

logger = structlog.get_logger("csrfly.security")

Extractor = Callable[[Any], Awaitable[str]]
"""Async callable returning the claimed token of a request."""


class TokenSource(StrEnum):
    """Request surface the claimed token is read from."""

    HEADER = "header"
    FORM = "form"
    QUERY = "query"
    PARAM = "param"


@dataclass(frozen=True)
class TokenLookup:
    source: TokenSource
    key: str

    def __str__(self) -> str:
        return f"{self.source}:{self.key}"

    @classmethod
    def parse(cls, lookup: str) -> TokenLookup:
        """Parse ``"<source>:<key>"``.

        An unknown source falls back to ``header`` with the same key. A value
        without a key falls back to the default lookup. Neither case raises.
        """
        source, _, key = lookup.partition(":")
        source, key = source.strip().lower(), key.strip()
        if not key:
            logger.warning("csrf_lookup_fallback", lookup=lookup, fallback=DEFAULT_TOKEN_LOOKUP)
            return cls.parse(DEFAULT_TOKEN_LOOKUP)
        try:
            return cls(TokenSource(source), key)
        except ValueError:
            logger.warning("csrf_lookup_fallback", lookup=lookup, fallback=f"header:{key}")
            return cls(TokenSource.HEADER, key)


# ---------------------------------------------------------------------------
# Readers — one per request surface
# ---------------------------------------------------------------------------


async def _from_header(request: Any, key: str) -> str | None:
    return request.headers.get(key)


async def _from_query(request: Any, key: str) -> str | None:
    return request.query_params.get(key)


async def _from_param(request: Any, key: str) -> str | None:
    value = request.path_params.get(key)
    return None if value is None else str(value)


async def _from_form(request: Any, key: str) -> str | None:
    # Buffer the body first so the filter chain can replay it downstream.
    body = getattr(request, "body", None)
    if body is not None:
        await body()
    try:
        form = await request.form()
    except (HTTPException, MultiPartException) as exc:
        # An unparseable body carries no token.
        logger.debug("csrf_form_unparseable", error=str(exc))
        return None
    value = form.get(key)
    # Uploaded files are never a token.
    return value if isinstance(value, str) else None


_READERS: dict[TokenSource, Callable[[Any, str], Awaitable[str | None]]] = {
    TokenSource.HEADER: _from_header,
    TokenSource.FORM: _from_form,
    TokenSource.QUERY: _from_query,
    TokenSource.PARAM: _from_param,
}

_MISSING_MESSAGES: dict[TokenSource, str] = {
    TokenSource.HEADER: "missing csrf token in header",
    TokenSource.FORM: "missing csrf token in form parameter",
    TokenSource.QUERY: "missing csrf token in query string",
    TokenSource.PARAM: "missing csrf token in url parameter",
}


def build_extractor(lookup: TokenLookup | str) -> Extractor:
    """Return the extractor for *lookup*, selected once."""
    if isinstance(lookup, str):
        lookup = TokenLookup.parse(lookup)
    read = _READERS[lookup.source]
    message = _MISSING_MESSAGES[lookup.source]
    key = lookup.key
    source = str(lookup.source)

    async def extract(request: Any) -> str:
        token = await read(request, key)
        if not token:
            raise ExtractionError(message, context={"source": source, "key": key})
        return token

    return extract
