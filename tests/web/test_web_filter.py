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
"""Tests for the WebFilter protocol and OncePerRequestFilter base class."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from csrfly.web.adapters.starlette.filters.csrf_filter import CsrfFilter
from csrfly.web.filters import OncePerRequestFilter
from csrfly.web.ports.filter import WebFilter


class _PassThrough(OncePerRequestFilter):
    async def do_filter(self, request, call_next):
        return await call_next(request)


def _make_request(path: str) -> MagicMock:
    req = MagicMock()
    req.url.path = path
    return req


class TestWebFilterProtocol:
    def test_csrf_filter_is_webfilter(self):
        assert isinstance(CsrfFilter(), WebFilter)

    def test_non_filter_is_not_webfilter(self):
        class _NotAFilter:
            async def do_filter(self, request, call_next):
                return None

        assert not isinstance(_NotAFilter(), WebFilter)


class TestOncePerRequestFilterMatching:
    def test_no_patterns_matches_all(self):
        f = _PassThrough()
        assert not f.should_not_filter(_make_request("/anything"))

    def test_url_patterns(self):
        f = _PassThrough()
        f.url_patterns = ["/forms/*", "/account/*"]
        assert not f.should_not_filter(_make_request("/forms/contact"))
        assert not f.should_not_filter(_make_request("/account/password"))
        assert f.should_not_filter(_make_request("/public/index"))

    def test_exclude_wins_over_include(self):
        f = _PassThrough()
        f.url_patterns = ["/api/*"]
        f.exclude_patterns = ["/api/webhooks/*"]
        assert f.should_not_filter(_make_request("/api/webhooks/stripe"))
        assert not f.should_not_filter(_make_request("/api/orders"))

    def test_instance_patterns_do_not_leak_to_class(self):
        f1 = _PassThrough()
        f1.exclude_patterns = ["/health"]
        assert _PassThrough().exclude_patterns == []

    def test_cannot_instantiate_without_do_filter(self):
        with pytest.raises(TypeError):
            OncePerRequestFilter()  # type: ignore[abstract]
