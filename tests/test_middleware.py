"""
Tests for the FastAPI adapter: session cookies, pipeline middleware and
route dependencies.
"""

import logging

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from gatepass.modules.auth.errors import AuthenticationError
from gatepass.modules.http import AuthRequest
from gatepass.modules.middleware import (
    AuthenticateMiddleware,
    SessionMiddleware,
    get_auth_request,
    install_error_handlers,
    require,
    to_response,
)
from gatepass.modules.pipeline import CONTINUE, Redirect, Respond

from conftest import HeaderStrategy, ScriptedStrategy


def build_app(authenticator, backend, auth_middleware=None, error_format="json") -> FastAPI:
    """App with session support, optional pipeline middleware and a few routes."""
    app = FastAPI()
    session_middleware = SessionMiddleware(authenticator, backend)

    if auth_middleware is not None:
        @app.middleware("http")
        async def add_auth(request: Request, call_next):
            return await auth_middleware(request, call_next)

    # Registered last so it runs first
    @app.middleware("http")
    async def add_session(request: Request, call_next):
        return await session_middleware(request, call_next)

    install_error_handlers(app, error_format)

    authenticator.use(HeaderStrategy())
    login = require(authenticator.authenticate("header"))
    restore = require(authenticator.session())

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/login")
    async def do_login(auth: AuthRequest = Depends(login)):
        return {"user": auth.user["username"]}

    @app.get("/me")
    async def me(auth: AuthRequest = Depends(restore)):
        return {"user": auth.user["username"] if auth.user else None}

    @app.post("/logout")
    async def logout(request: Request):
        await get_auth_request(request).log_out()
        return {"ok": True}

    return app


def test_login_sets_cookie_and_session_restores_user(authenticator, memory_backend):
    client = TestClient(build_app(authenticator, memory_backend))

    response = client.post("/login", headers={"X-User": "1"})
    assert response.status_code == 200
    assert response.json() == {"user": "alice"}
    cookie = response.cookies.get("gatepass.sid")
    assert cookie
    assert "httponly" in response.headers["set-cookie"].lower()

    response = client.get("/me")
    assert response.json() == {"user": "alice"}
    # Unchanged session: no new cookie
    assert "set-cookie" not in response.headers

    response = client.post("/logout")
    assert response.json() == {"ok": True}
    assert response.cookies.get("gatepass.sid") != cookie

    assert client.get("/me").json() == {"user": None}


def test_anonymous_request_creates_no_session(authenticator, memory_backend):
    client = TestClient(build_app(authenticator, memory_backend))

    response = client.get("/me")

    assert response.json() == {"user": None}
    assert "set-cookie" not in response.headers
    assert memory_backend.sessions == {}


def test_require_failure_returns_challenge(authenticator, memory_backend):
    client = TestClient(build_app(authenticator, memory_backend))

    response = client.post("/login")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Header"
    assert response.text == "Unauthorized"


def test_middleware_end_to_end_challenges(authenticator, memory_backend):
    authenticator.use(ScriptedStrategy("basic", "fail", "Basic realm=x"))
    authenticator.use(ScriptedStrategy("bearer", "fail", "Bearer"))
    middleware = AuthenticateMiddleware(
        authenticator.authenticate(["basic", "bearer"]),
        skip_paths={"/health": ["GET"]},
        log_attempts=False,
    )
    client = TestClient(build_app(authenticator, memory_backend, middleware))

    response = client.get("/me")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Basic realm=x, Bearer"

    # Skipped path
    assert client.get("/health").json() == {"status": "ok"}


def test_middleware_redirect(authenticator, memory_backend):
    authenticator.use(ScriptedStrategy("oauth", "redirect", "https://idp.example.com/auth"))
    middleware = AuthenticateMiddleware(authenticator.authenticate("oauth"), log_attempts=False)
    client = TestClient(build_app(authenticator, memory_backend, middleware))

    response = client.get("/me", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "https://idp.example.com/auth"
    assert response.headers["content-length"] == "0"


def test_middleware_pass_reaches_route(authenticator, memory_backend):
    authenticator.use(ScriptedStrategy("anonymous", "pass"))
    middleware = AuthenticateMiddleware(authenticator.authenticate("anonymous"))
    client = TestClient(build_app(authenticator, memory_backend, middleware))

    assert client.get("/me").json() == {"user": None}


def test_middleware_gatepass_error_jsonrpc(authenticator, memory_backend):
    middleware = AuthenticateMiddleware(
        authenticator.authenticate("not-registered"),
        error_format="jsonrpc",
    )
    client = TestClient(build_app(authenticator, memory_backend, middleware))

    response = client.get("/me")

    assert response.status_code == 500
    body = response.json()
    assert body["jsonrpc"] == "2.0"
    assert body["error"]["code"] == -32603
    assert "not-registered" in body["error"]["message"]
    assert body["id"] is None

    tagged = client.get("/me", headers={"X-Request-ID": "req-7"})
    assert tagged.json()["id"] == "req-7"


def test_middleware_fail_with_error_json(authenticator, memory_backend):
    authenticator.use(ScriptedStrategy("basic", "fail", 403))
    middleware = AuthenticateMiddleware(authenticator.authenticate("basic", fail_with_error=True))
    client = TestClient(build_app(authenticator, memory_backend, middleware))

    response = client.get("/me")

    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden", "status": 403}


def test_middleware_strategy_error_is_internal(authenticator, memory_backend):
    authenticator.use(ScriptedStrategy("broken", "error", RuntimeError("ldap down")))
    middleware = AuthenticateMiddleware(authenticator.authenticate("broken"))
    client = TestClient(build_app(authenticator, memory_backend, middleware))

    response = client.get("/me")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal error during authentication", "status": 500}


def test_error_handler_for_route_dependencies(authenticator, memory_backend):
    app = build_app(authenticator, memory_backend)
    authenticator.use(ScriptedStrategy("strict", "fail", "Strict", 401))
    strict = require(authenticator.authenticate("strict", fail_with_error=True))

    @app.get("/strict")
    async def strict_route(auth: AuthRequest = Depends(strict)):
        return {}

    response = TestClient(app).get("/strict")

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized", "status": 401}


def test_to_response():
    assert to_response(CONTINUE) is None
    assert to_response("callback result") is None

    redirect = to_response(Redirect("/login", 303))
    assert redirect.status_code == 303
    assert redirect.headers["location"] == "/login"
    assert redirect.body == b""

    respond = to_response(Respond(401, {"WWW-Authenticate": "Bearer"}, "Unauthorized"))
    assert respond.status_code == 401
    assert respond.headers["www-authenticate"] == "Bearer"
    assert respond.body == b"Unauthorized"

    passthrough = to_response(redirect)
    assert passthrough is redirect


def test_should_skip_auth_methods(authenticator):
    middleware = AuthenticateMiddleware(
        authenticator.session(),
        skip_paths={"/public": ["*"], "/docs": ["GET"]},
    )

    def fake_request(path, method):
        scope = {"type": "http", "path": path, "method": method, "headers": [], "query_string": b""}
        return Request(scope)

    assert middleware.should_skip_auth(fake_request("/public", "DELETE"))
    assert middleware.should_skip_auth(fake_request("/docs", "get"))
    assert not middleware.should_skip_auth(fake_request("/docs", "POST"))
    assert not middleware.should_skip_auth(fake_request("/private", "GET"))


def test_authentication_error_payload():
    error = AuthenticationError(status=429)
    assert error.to_payload() == {"error": "Too Many Requests", "status": 429}


def test_error_handler_jsonrpc_echoes_request_id(authenticator, memory_backend):
    app = build_app(authenticator, memory_backend, error_format="jsonrpc")
    authenticator.use(ScriptedStrategy("strict", "fail", 401))
    strict = require(authenticator.authenticate("strict", fail_with_error=True))

    @app.get("/strict")
    async def strict_route(auth: AuthRequest = Depends(strict)):
        return {}

    response = TestClient(app).get("/strict", headers={"X-Request-ID": "abc-123"})

    assert response.status_code == 401
    assert response.json() == {
        "jsonrpc": "2.0",
        "error": {"code": -32700, "message": "Unauthorized"},
        "id": "abc-123",
    }


def test_middleware_logs_strategy_errors_with_arguments(authenticator, memory_backend, caplog):
    authenticator.use(ScriptedStrategy("broken", "error", RuntimeError("ldap down")))
    middleware = AuthenticateMiddleware(authenticator.authenticate("broken"))
    client = TestClient(build_app(authenticator, memory_backend, middleware))

    with caplog.at_level(logging.ERROR, logger="gatepass.modules.middleware"):
        client.get("/me")

    errors = [record for record in caplog.records if record.name == "gatepass.modules.middleware"]
    assert len(errors) == 1
    assert errors[0].msg == "Error during authentication: %s: %s"
    assert errors[0].args[0] == "RuntimeError"
    assert str(errors[0].args[1]) == "ldap down"
