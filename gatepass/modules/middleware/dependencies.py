"""
Route-level authentication for FastAPI.

``require(handler)`` runs a pipeline as a dependency instead of as
middleware, so different routes can use different strategies.
"""

import logging

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from ..auth.errors import GatepassError
from ..http.request import AuthRequest
from .responses import format_error, request_id_of, to_response
from .session import get_auth_request

logger = logging.getLogger(__name__)


class AuthenticationHalted(Exception):
    """Raised by ``require`` when the pipeline answered the request itself."""

    def __init__(self, response: Response):
        super().__init__(f"Authentication halted with status {response.status_code}")
        self.response = response


def require(handler):
    """
    Create a dependency that authenticates the route with ``handler``.

    Args:
        handler: AuthenticateHandler from ``Authenticator.authenticate``

    Returns:
        Async dependency resolving to the request's ``AuthRequest``

    Example:
        >>> @app.get("/me")
        ... async def me(auth: AuthRequest = Depends(require(bearer))):
        ...     return auth.user
    """

    async def dependency(request: Request) -> AuthRequest:
        auth_request = get_auth_request(request, handler.authenticator)
        outcome = await handler(auth_request)
        response = to_response(outcome)
        if response is not None:
            raise AuthenticationHalted(response)
        return auth_request

    return dependency


def install_error_handlers(app: FastAPI, error_format: str = "json") -> None:
    """Register handlers for ``AuthenticationHalted`` and gatepass errors."""

    @app.exception_handler(AuthenticationHalted)
    async def halted_handler(request: Request, exc: AuthenticationHalted):
        return exc.response

    @app.exception_handler(GatepassError)
    async def gatepass_error_handler(request: Request, exc: GatepassError):
        if exc.status >= 500:
            logger.error("Authentication error on %s: %s", request.url.path, exc)
        else:
            logger.debug("Authentication rejected on %s: %s", request.url.path, exc.status)
        return JSONResponse(
            status_code=exc.status,
            content=format_error(exc.status, str(exc), error_format, request_id_of(request)),
        )
