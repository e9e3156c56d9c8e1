#!/usr/bin/env python3
"""
Gatepass - Main Entry Point

This is the thin composition root that:
1. Loads configuration
2. Builds the authenticator and session storage
3. Wires the middleware into a FastAPI application

Applications register their strategies and serializers on the returned
app's ``state.authenticator`` (or pass a prepared authenticator).
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as redis
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gatepass import __version__
from gatepass.config.provider import ConfigProvider, EnvConfigProvider
from gatepass.logging_config import get_logging_config
from gatepass.modules.auth.authenticator import Authenticator
from gatepass.modules.auth.factory import AuthFactory
from gatepass.modules.middleware import (
    create_authenticate_middleware,
    create_session_middleware,
    get_auth_request,
    install_error_handlers,
)

logger = logging.getLogger(__name__)


def get_redis_client(redis_url: str) -> redis.Redis:
    """Create Redis client; no connection is made until first use."""
    return redis.from_url(redis_url, encoding="utf-8", decode_responses=True)


def session_store_unavailable(exc: Exception) -> JSONResponse:
    """Response for requests that cannot reach the session store."""
    logger.error("Redis connection error: %s", exc)
    return JSONResponse(status_code=503, content={"error": "Session store unavailable"})


def create_app(
    config_provider: Optional[ConfigProvider] = None,
    authenticator: Optional[Authenticator] = None,
    redis_client: Optional[redis.Redis] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config_provider: Configuration provider (environment by default)
        authenticator: Prepared authenticator; built from configuration if omitted
        redis_client: Redis client for the redis session backend

    Returns:
        FastAPI app that restores login state on every request
    """
    config_provider = config_provider or EnvConfigProvider()
    session_config = config_provider.get_session_config()
    auth_config = config_provider.get_auth_config()

    if session_config.uses_redis and redis_client is None:
        redis_client = get_redis_client(session_config.redis_url)

    authenticator = authenticator or AuthFactory.build(config_provider)
    backend = AuthFactory.build_session_backend(config_provider, redis_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifecycle - verify and release the Redis connection.
        """
        logger.info("Starting Gatepass API...")
        if redis_client is not None:
            await redis_client.ping()
            logger.info("Redis session store reachable")

        yield

        logger.info("Shutting down Gatepass API...")
        if redis_client is not None:
            await redis_client.aclose()
        logger.info("Gatepass API shutdown complete")

    app = FastAPI(
        title="Gatepass API",
        description="Gatepass - Strategy-based request authentication",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.authenticator = authenticator
    app.state.session_backend = backend

    restore_session = create_authenticate_middleware(
        authenticator,
        "session",
        skip_paths={"/health": ["GET"]},
        error_format=auth_config.error_format,
    )
    session_middleware = create_session_middleware(authenticator, backend, session_config)

    # The last registered middleware runs first; the session must be loaded
    # before the pipeline reads it
    @app.middleware("http")
    async def restore_login(request: Request, call_next):
        return await restore_session(request, call_next)

    @app.middleware("http")
    async def load_session(request: Request, call_next):
        # Errors raised here never reach the app's exception handlers
        try:
            return await session_middleware(request, call_next)
        except redis.ConnectionError as exc:
            return session_store_unavailable(exc)

    install_error_handlers(app, auth_config.error_format)

    @app.exception_handler(redis.ConnectionError)
    async def redis_error_handler(request, exc):
        """Handle Redis connection errors."""
        return session_store_unavailable(exc)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    @app.post("/logout")
    async def logout(request: Request):
        """Terminate the current login session."""
        auth_request = get_auth_request(request, authenticator)
        was_authenticated = auth_request.is_authenticated()
        await auth_request.log_out()
        return {"logged_out": was_authenticated}

    return app


def main() -> None:
    """Run the API server with uvicorn."""
    api_config = EnvConfigProvider().get_api_config()
    # Use dict config for logging, not file path
    uvicorn.run(
        "gatepass.main:create_app",
        factory=True,
        host=api_config.host,
        port=api_config.port,
        log_level=api_config.log_level.lower(),
        reload=api_config.debug,
        log_config=get_logging_config(api_config.log_level),
    )


if __name__ == "__main__":
    main()
