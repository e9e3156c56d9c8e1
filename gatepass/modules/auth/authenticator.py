"""
Authenticator: the strategy registry and the three transform chains.

An application normally builds one ``Authenticator`` at startup, registers
its strategies and chain handlers, and then creates per-route or
per-application handlers with ``authenticate()``.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Union

from ..chain.chain import SKIP, HandlerChain
from ..http.request import AuthRequest
from ..pipeline.authenticate import AuthenticateCallback, AuthenticateHandler, StrategySpecifier
from ..pipeline.options import AuthenticateOptions
from ..session.manager import SessionManager
from ..session.session import Session
from ..strategies.session import SessionStrategy
from .errors import ConfigurationError, DeserializationError, SerializationError
from .interfaces import StrategyLike

logger = logging.getLogger(__name__)


def _serialized(value: Any) -> bool:
    # 0 is a valid serialized user; False, "" and None are not
    if value is None or value is SKIP or value is False:
        return False
    return not (isinstance(value, str) and value == "")


def _deserialized(value: Any) -> bool:
    # None and False both mean "the user no longer exists"; only SKIP skips
    return value is None or value is False or bool(value)


def _transformed(value: Any) -> bool:
    return bool(value)


class Authenticator:
    """
    Registry of named strategies plus the serializer, deserializer and
    auth-info transformer chains.

    Registration is expected to happen at startup only; mutating the registry
    while requests are in flight is not supported.
    """

    def __init__(self, *, session_key: str = "auth", user_property: str = "user"):
        """
        Initialize the authenticator.

        Args:
            session_key: Session field that holds login state
            user_property: Request slot that receives the authenticated user
        """
        self.session_key = session_key
        self.user_property = user_property

        self._strategies: Dict[str, StrategyLike] = {}
        self._serializers = HandlerChain(
            "serializer", terminal=_serialized, exhausted_error=SerializationError
        )
        self._deserializers = HandlerChain(
            "deserializer", terminal=_deserialized, exhausted_error=DeserializationError
        )
        self._info_transformers = HandlerChain(
            "info transformer", terminal=_transformed, fallback_to_input=True
        )

        self.session_manager = SessionManager(self.serialize_user, key=session_key)
        self.use(SessionStrategy(self.deserialize_user, self.session_manager))

    # Strategy registry

    def use(self, strategy: StrategyLike, name: Optional[str] = None) -> "Authenticator":
        """
        Register a strategy under ``name`` or its own ``name`` attribute.

        A later registration under the same name replaces the earlier one.

        Raises:
            ConfigurationError: If no name can be determined
        """
        name = name or getattr(strategy, "name", None)
        if not name:
            raise ConfigurationError("Authentication strategies must have a name")
        if name in self._strategies:
            logger.debug("Replacing strategy %s", name)
        self._strategies[name] = strategy
        logger.debug("Registered strategy %s", name)
        return self

    def unuse(self, name: str) -> "Authenticator":
        """Remove a registered strategy; unknown names are ignored."""
        self._strategies.pop(name, None)
        return self

    def strategy(self, name: str) -> Optional[StrategyLike]:
        """Look up a registered strategy by name."""
        return self._strategies.get(name)

    # Request pipeline

    def authenticate(
        self,
        specifier: StrategySpecifier,
        options: Union[AuthenticateOptions, Mapping[str, Any], None] = None,
        callback: Optional[AuthenticateCallback] = None,
        **option_kwargs: Any,
    ) -> AuthenticateHandler:
        """
        Create a handler that authenticates requests with ``specifier``.

        Args:
            specifier: Strategy instance, registered name, or a list of either
            options: ``AuthenticateOptions`` or a mapping of option values
            callback: Optional ``callback(err, user=None, info=None, status=None)``
                that takes over success, failure and error handling
            **option_kwargs: Option values merged over ``options``

        Returns:
            AuthenticateHandler to await once per request
        """
        opts = AuthenticateOptions.coerce(options, **option_kwargs)
        return AuthenticateHandler(self, specifier, opts, callback)

    def session(
        self, options: Union[AuthenticateOptions, Mapping[str, Any], None] = None
    ) -> AuthenticateHandler:
        """Handler that restores login state from the session."""
        return self.authenticate("session", options)

    def request_for(self, session: Optional[Session], native: Any = None) -> AuthRequest:
        """Build the request context bound to this authenticator."""
        return AuthRequest(
            session,
            user_property=self.user_property,
            session_manager=self.session_manager,
            native=native,
        )

    # Transform chains

    def serializer(self, handler):
        """Register a user serializer; usable as a decorator."""
        return self._serializers.register(handler)

    def deserializer(self, handler):
        """Register a user deserializer; usable as a decorator."""
        return self._deserializers.register(handler)

    def info_transformer(self, handler):
        """Register an auth-info transformer; usable as a decorator."""
        return self._info_transformers.register(handler)

    async def serialize_user(self, user: Any, request: Any = None) -> Any:
        """
        Turn ``user`` into the value stored in the session.

        Raises:
            SerializationError: If no serializer produced a value
        """
        return await self._serializers.run(user, request)

    async def deserialize_user(self, serialized: Any, request: Any = None) -> Any:
        """
        Turn a stored value back into a user, or ``False`` if it is gone.

        Raises:
            DeserializationError: If no deserializer produced a value
        """
        user = await self._deserializers.run(serialized, request)
        return False if user is None else user

    async def transform_auth_info(self, info: Any, request: Any = None) -> Any:
        """Post-process strategy info; returns ``info`` unchanged when every handler skips."""
        return await self._info_transformers.run(info, request)
