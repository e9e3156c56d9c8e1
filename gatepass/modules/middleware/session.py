"""
Session middleware: loads the session named by the cookie and exposes the
request context on ``request.state.auth``.
"""

import logging
from typing import Any, Optional

from fastapi import Request

from ..http.request import AuthRequest
from ..session.session import Session, SessionBackend

logger = logging.getLogger(__name__)


def get_auth_request(request: Request, authenticator: Any = None) -> AuthRequest:
    """
    Return the request context attached by ``SessionMiddleware``.

    Without the session middleware a context without session support is
    created (and attached) using ``authenticator``.
    """
    auth_request = getattr(request.state, "auth", None)
    if auth_request is None:
        if authenticator is None:
            raise RuntimeError("SessionMiddleware is not installed and no authenticator was given")
        auth_request = authenticator.request_for(None, native=request)
        request.state.auth = auth_request
    return auth_request


class SessionMiddleware:
    """
    Cookie-backed session middleware for FastAPI applications.

    Register it after any middleware that uses ``request.state.auth``:
    with ``@app.middleware("http")`` the last registration runs first.
    """

    def __init__(
        self,
        authenticator,
        backend: SessionBackend,
        cookie_name: str = "gatepass.sid",
        max_age: Optional[int] = 3600,
        secure: bool = False,
        same_site: str = "lax",
        path: str = "/",
    ):
        """
        Initialize session middleware.

        Args:
            authenticator: Authenticator used to build request contexts
            backend: Session storage backend
            cookie_name: Name of the session id cookie
            max_age: Cookie lifetime in seconds (None for a browser session cookie)
            secure: Only send the cookie over HTTPS
            same_site: SameSite attribute ("lax", "strict" or "none")
            path: Cookie path
        """
        self.authenticator = authenticator
        self.backend = backend
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.secure = secure
        self.same_site = same_site
        self.path = path

    async def __call__(self, request: Request, call_next):
        """Load the session, run the request, then persist and set the cookie."""
        incoming_id = request.cookies.get(self.cookie_name)
        session = await Session.load(self.backend, incoming_id)
        request.state.auth = self.authenticator.request_for(session, native=request)

        response = await call_next(request)

        if session.destroyed:
            response.delete_cookie(self.cookie_name, path=self.path)
            return response

        if session.modified:
            await session.save()

        if session.persisted and session.id != incoming_id:
            logger.debug("Issuing session cookie for %s %s", request.method, request.url.path)
            response.set_cookie(
                self.cookie_name,
                session.id,
                max_age=self.max_age,
                path=self.path,
                secure=self.secure,
                httponly=True,
                samesite=self.same_site,
            )
        return response
