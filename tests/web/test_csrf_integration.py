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
"""End-to-end CSRF scenarios through a Starlette application."""

from __future__ import annotations

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from csrfly.core.config import Config
from csrfly.security.csrf import CsrfConfig
from csrfly.web.adapters.starlette.filters.csrf_filter import csrf_token
from csrfly.web.adapters.starlette.middleware import csrf_middleware

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _echo_token(request: Request) -> PlainTextResponse:
    return PlainTextResponse(csrf_token(request) or "missing")


async def _echo_form(request: Request) -> PlainTextResponse:
    form = await request.form()
    return PlainTextResponse(str(form.get("name", "missing")))


def _make_app(config: CsrfConfig | Config | None = None) -> Starlette:
    return Starlette(
        routes=[
            Route("/", _echo_token),
            Route("/register", _echo_token, methods=["POST", "PUT", "DELETE", "PATCH"]),
            Route("/webhooks/github", _echo_token, methods=["POST"]),
            Route("/profile", _echo_form, methods=["POST"]),
        ],
        middleware=[csrf_middleware(config)],
    )


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestSafeMethodScenarios:
    def test_get_without_cookie_issues_token(self):
        client = TestClient(_make_app())
        resp = client.get("/")
        assert resp.status_code == 200
        token = resp.cookies["_csrf"]
        assert resp.text == token
        assert "Cookie" in resp.headers["vary"]

    def test_head_never_rejected(self):
        client = TestClient(_make_app())
        client.cookies.set("_csrf", "abc")
        resp = client.head("/", headers={"X-CSRF-Token": "xyz"})
        assert resp.status_code == 200
        assert resp.cookies["_csrf"] == "abc"

    def test_options_and_trace_skip_validation(self):
        client = TestClient(_make_app())
        for method in ("OPTIONS", "TRACE"):
            # No route accepts these methods; the router answers 405, not the filter.
            resp = client.request(method, "/register")
            assert resp.status_code == 405
            assert "_csrf" in resp.cookies

    def test_token_is_not_rotated(self):
        client = TestClient(_make_app())
        first = client.get("/")
        second = client.get("/")
        assert first.cookies["_csrf"] == second.cookies["_csrf"]
        assert second.text == first.text


class TestUnsafeMethodScenarios:
    def test_post_without_cookie_or_header_is_400(self):
        client = TestClient(_make_app())
        resp = client.post("/register")
        assert resp.status_code == 400
        assert resp.content == b""

    def test_post_with_matching_header_passes(self):
        client = TestClient(_make_app())
        client.cookies.set("_csrf", "abc")
        resp = client.post("/register", headers={"X-CSRF-Token": "abc"})
        assert resp.status_code == 200
        assert resp.text == "abc"
        assert resp.cookies["_csrf"] == "abc"

    def test_post_with_mismatched_header_is_403(self):
        client = TestClient(_make_app())
        client.cookies.set("_csrf", "abc")
        resp = client.post("/register", headers={"X-CSRF-Token": "xyz"})
        assert resp.status_code == 403
        assert resp.content == b""

    def test_equal_length_different_token_is_403(self):
        client = TestClient(_make_app())
        client.cookies.set("_csrf", "abcdef")
        assert client.put("/register", headers={"X-CSRF-Token": "abcdeg"}).status_code == 403

    def test_round_trip_with_issued_token(self):
        client = TestClient(_make_app())
        token = client.get("/").cookies["_csrf"]
        for method in ("POST", "PUT", "PATCH", "DELETE"):
            resp = client.request(method, "/register", headers={"X-CSRF-Token": token})
            assert resp.status_code == 200
            assert resp.cookies["_csrf"] == token


class TestLookupScenarios:
    def test_query_lookup_ignores_form_field(self):
        client = TestClient(_make_app(CsrfConfig(token_lookup="query:csrf_token")))
        client.cookies.set("_csrf", "abc")
        resp = client.post("/register", data={"csrf_token": "abc"})
        assert resp.status_code == 400

    def test_query_lookup_accepts_query_param(self):
        client = TestClient(_make_app(CsrfConfig(token_lookup="query:csrf_token")))
        client.cookies.set("_csrf", "abc")
        resp = client.post("/register", params={"csrf_token": "abc"})
        assert resp.status_code == 200

    def test_form_lookup_leaves_body_readable(self):
        client = TestClient(_make_app(CsrfConfig(token_lookup="form:_csrf")))
        client.cookies.set("_csrf", "abc")
        resp = client.post("/profile", data={"_csrf": "abc", "name": "ada"})
        assert resp.status_code == 200
        assert resp.text == "ada"

    def test_form_lookup_rejects_wrong_field(self):
        client = TestClient(_make_app(CsrfConfig(token_lookup="form:_csrf")))
        client.cookies.set("_csrf", "abc")
        resp = client.post("/profile", data={"_csrf": "xyz", "name": "ada"})
        assert resp.status_code == 403

    def test_form_lookup_with_unparseable_body_is_400(self):
        client = TestClient(_make_app(CsrfConfig(token_lookup="form:_csrf")))
        client.cookies.set("_csrf", "abc")
        resp = client.post("/profile", content=b"garbage", headers={"content-type": "multipart/form-data"})
        assert resp.status_code == 400
        assert resp.content == b""

    def test_param_lookup_on_route_middleware(self):
        app = Starlette(
            routes=[
                Route(
                    "/confirm/{token}",
                    _echo_token,
                    methods=["POST"],
                    middleware=[csrf_middleware(CsrfConfig(token_lookup="param:token"))],
                )
            ]
        )
        client = TestClient(app)
        client.cookies.set("_csrf", "abc")
        assert client.post("/confirm/abc").status_code == 200
        assert client.post("/confirm/xyz").status_code == 403


class TestConfigurationScenarios:
    def test_bypass_predicate(self):
        config = CsrfConfig(bypass=lambda request: request.url.path.startswith("/webhooks/"))
        client = TestClient(_make_app(config))
        resp = client.post("/webhooks/github")
        assert resp.status_code == 200
        assert "_csrf" not in resp.cookies
        assert resp.text == "missing"

    def test_config_file_properties(self):
        config = Config(
            {
                "csrfly": {
                    "security": {
                        "csrf": {"cookie_name": "xsrf", "context_key": "xsrf", "token_lookup": "header:X-XSRF"}
                    }
                }
            }
        )
        client = TestClient(_make_app(config))
        client.cookies.set("xsrf", "abc")
        resp = client.post("/register", headers={"X-XSRF": "abc"})
        assert resp.status_code == 200
        assert resp.cookies["xsrf"] == "abc"
        # The handler reads the default context key.
        assert resp.text == "missing"

    def test_disabled_in_config_file_skips_protection(self):
        config = Config({"csrfly": {"security": {"csrf": {"enabled": False}}}})
        client = TestClient(_make_app(config))
        resp = client.post("/register")
        assert resp.status_code == 200
        assert "_csrf" not in resp.cookies
        assert resp.text == "missing"
