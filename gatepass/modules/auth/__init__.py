"""
Authentication Module - Black Box Interface

Purpose: Register strategies and run them against requests
Interface: Authenticator, AuthFactory, Strategy, error types
Hidden: Chain traversal, session persistence, failure aggregation

Strategies can be replaced or added without affecting other modules.
"""

from .errors import (
    AuthenticationError,
    ChainExhaustedError,
    ConfigurationError,
    DeserializationError,
    GatepassError,
    ProtocolViolationError,
    SerializationError,
    SessionSupportError,
    UnknownStrategyError,
)
from .interfaces import Strategy, StrategyLike, is_strategy

__all__ = [
    "Authenticator",
    "AuthFactory",
    "Strategy",
    "StrategyLike",
    "is_strategy",
    "GatepassError",
    "AuthenticationError",
    "ConfigurationError",
    "UnknownStrategyError",
    "SessionSupportError",
    "ChainExhaustedError",
    "SerializationError",
    "DeserializationError",
    "ProtocolViolationError",
]


def __getattr__(name):
    # The authenticator imports the pipeline, which imports this package
    if name == "Authenticator":
        from .authenticator import Authenticator

        return Authenticator
    if name == "AuthFactory":
        from .factory import AuthFactory

        return AuthFactory
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
