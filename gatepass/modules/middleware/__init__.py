"""
Authentication Middleware Module - Black Box Interface

Purpose: Run gatepass pipelines inside FastAPI applications
Interface: SessionMiddleware, AuthenticateMiddleware, require(), factory functions
Hidden: Cookie handling, outcome conversion, error formatting

Can be used by any FastAPI app or sub-app that needs authentication.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from ..auth.errors import GatepassError
from .dependencies import AuthenticationHalted, install_error_handlers, require
from .responses import format_error, request_id_of, to_response
from .session import SessionMiddleware, get_auth_request

logger = logging.getLogger(__name__)


class AuthenticateMiddleware:
    """
    Middleware that runs an authentication pipeline for every request.

    Requests for which the pipeline produces ``Continue`` go on to the
    route with ``request.state.auth`` populated. Redirects and failure
    responses end the request here.
    """

    def __init__(
        self,
        handler,
        skip_paths: Optional[Dict[str, list]] = None,
        error_format: str = "json",
        log_attempts: bool = True
    ):
        """
        Initialize authentication middleware.

        Args:
            handler: AuthenticateHandler from ``Authenticator.authenticate``
            skip_paths: Dict of {path: [methods]} to skip authentication
            error_format: Error response format ("json" or "jsonrpc")
            log_attempts: Whether to log authentication attempts
        """
        self.handler = handler
        self.skip_paths = skip_paths or {}
        self.error_format = error_format
        self.log_attempts = log_attempts

    def should_skip_auth(self, request: Request) -> bool:
        """Check if authentication should be skipped for this request."""
        path = str(request.url.path)
        method = request.method.upper()

        if path in self.skip_paths:
            allowed_methods = self.skip_paths[path]
            if "*" in allowed_methods or method in allowed_methods:
                return True

        return False

    def format_error(self, status_code: int, message: str, request_id: Optional[str] = None) -> Dict[str, Any]:
        """Format error response based on configured format."""
        return format_error(status_code, message, self.error_format, request_id)

    async def __call__(self, request: Request, call_next):
        """Process the request through the authentication pipeline."""
        if self.should_skip_auth(request):
            if self.log_attempts:
                logger.debug("Skipping auth for %s %s", request.method, request.url.path)
            return await call_next(request)

        auth_request = get_auth_request(request, self.handler.authenticator)

        try:
            outcome = await self.handler(auth_request)
        except GatepassError as e:
            if e.status >= 500:
                logger.error("Authentication misconfigured for %s: %s", request.url.path, e)
            elif self.log_attempts:
                logger.debug("Authentication rejected for %s: %s", request.url.path, e.status)
            return JSONResponse(
                status_code=e.status,
                content=self.format_error(e.status, str(e), request_id_of(request))
            )
        except Exception as e:
            logger.error("Error during authentication: %s: %s", type(e).__name__, e)
            return JSONResponse(
                status_code=500,
                content=self.format_error(500, "Internal error during authentication", request_id_of(request))
            )

        response = to_response(outcome)
        if response is not None:
            if self.log_attempts:
                logger.debug("Authentication answered %s with %s", request.url.path, response.status_code)
            return response

        return await call_next(request)


def create_authenticate_middleware(
    authenticator,
    specifier,
    options=None,
    skip_paths: Optional[Dict[str, list]] = None,
    error_format: str = "json"
) -> AuthenticateMiddleware:
    """
    Factory function to create pipeline middleware.

    Args:
        authenticator: Authenticator with the strategies registered
        specifier: Strategy name, instance, or list of either
        options: AuthenticateOptions or a mapping of option values
        skip_paths: Paths to skip authentication {"/path": ["GET", "POST"]}
        error_format: "json" or "jsonrpc" error format

    Returns:
        Configured AuthenticateMiddleware instance
    """
    return AuthenticateMiddleware(
        handler=authenticator.authenticate(specifier, options),
        skip_paths=skip_paths,
        error_format=error_format
    )


def create_session_middleware(authenticator, backend, session_config=None) -> SessionMiddleware:
    """
    Factory function to create session middleware from a ``SessionConfig``.

    Args:
        authenticator: Authenticator used to build request contexts
        backend: Session storage backend
        session_config: Optional SessionConfig with cookie settings

    Returns:
        Configured SessionMiddleware instance
    """
    if session_config is None:
        return SessionMiddleware(authenticator, backend)
    return SessionMiddleware(
        authenticator,
        backend,
        cookie_name=session_config.cookie_name,
        max_age=session_config.ttl,
        secure=session_config.secure,
        same_site=session_config.same_site,
    )


# Module interface - what this module provides
__all__ = [
    "AuthenticateMiddleware",
    "SessionMiddleware",
    "AuthenticationHalted",
    "create_authenticate_middleware",
    "create_session_middleware",
    "format_error",
    "get_auth_request",
    "install_error_handlers",
    "request_id_of",
    "require",
    "to_response",
]
