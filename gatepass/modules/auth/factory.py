"""
Authentication Factory following Black Box Design principles.

This factory:
- Constructs the authenticator based on configuration
- Chooses the session storage backend
- Returns only the public objects (hiding wiring details)
"""

import logging
from typing import Any, Optional

from ...config.provider import ConfigProvider
from ..session.session import MemorySessionBackend, RedisSessionBackend, SessionBackend
from .authenticator import Authenticator
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class AuthFactory:
    """
    Factory for building the authentication stack.

    This is the composition root that:
    - Creates the authenticator with configured keys
    - Creates the session backend
    """

    @staticmethod
    def build(config_provider: ConfigProvider) -> Authenticator:
        """
        Build an authenticator from configuration.

        Strategies and chain handlers are application specific and are
        registered by the caller afterwards.

        Args:
            config_provider: Configuration provider

        Returns:
            Authenticator with the session strategy registered
        """
        auth_config = config_provider.get_auth_config()
        logger.info(
            "Building authenticator (session key %s, user property %s)",
            auth_config.session_key,
            auth_config.user_property,
        )
        return Authenticator(
            session_key=auth_config.session_key,
            user_property=auth_config.user_property,
        )

    @staticmethod
    def build_session_backend(
        config_provider: ConfigProvider,
        redis_client: Optional[Any] = None,
    ) -> SessionBackend:
        """
        Build the session storage backend.

        Args:
            config_provider: Configuration provider
            redis_client: Async Redis client, required for the redis backend

        Returns:
            SessionBackend implementation

        Raises:
            ConfigurationError: If the redis backend is selected without a client
        """
        session_config = config_provider.get_session_config()

        if session_config.uses_redis:
            if redis_client is None:
                raise ConfigurationError("SESSION_BACKEND=redis requires a Redis client")
            logger.info("Using Redis session backend")
            return RedisSessionBackend(redis_client, default_ttl=session_config.ttl)

        logger.warning("Using in-memory session backend; sessions are lost on restart")
        return MemorySessionBackend()

    @staticmethod
    def build_for_testing(authenticator: Optional[Authenticator] = None) -> Authenticator:
        """
        Build an authenticator with serializers that store the user as-is.

        Args:
            authenticator: Existing authenticator to configure

        Returns:
            Authenticator for testing
        """
        authenticator = authenticator or Authenticator()
        authenticator.serializer(lambda user: user)
        authenticator.deserializer(lambda serialized: serialized)
        return authenticator
