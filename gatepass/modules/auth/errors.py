"""
Exception types raised by the authentication core.

Only lightweight, data-carrying exceptions live here so that the HTTP layer
can turn them into responses without knowing where they came from.
"""

from http import HTTPStatus
from typing import Any, Dict, Optional


class GatepassError(Exception):
    """Base class for errors raised by gatepass itself."""

    status: int = 500

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        if status is not None:
            self.status = status

    def to_payload(self) -> Dict[str, Any]:
        """Return a JSON-serialisable payload without internal details."""
        return {
            "error": str(self),
            "status": self.status,
        }


class AuthenticationError(GatepassError):
    """
    Raised when every strategy failed and ``fail_with_error`` is enabled.

    The message is the reason phrase of the aggregated status code.
    """

    status = 401

    def __init__(self, message: Optional[str] = None, status: int = 401):
        if message is None:
            message = reason_phrase(status)
        super().__init__(message, status)


class ConfigurationError(GatepassError):
    """The authenticator is wired incorrectly; not recoverable per request."""


class UnknownStrategyError(ConfigurationError):
    """A strategy name was not found in the registry."""

    def __init__(self, name: str):
        super().__init__(f'Unknown authentication strategy "{name}"')
        self.name = name


class SessionSupportError(ConfigurationError):
    """A request needed session state but none was attached to it."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "Login sessions require session support. "
            "Did you forget to install SessionMiddleware?"
        )


class ChainExhaustedError(GatepassError):
    """Every handler in a serialization chain skipped."""

    def __init__(self, message: str = "No handler in the chain produced a result"):
        super().__init__(message)


class SerializationError(ChainExhaustedError):
    def __init__(self, message: str = "Failed to serialize user into session"):
        super().__init__(message)


class DeserializationError(ChainExhaustedError):
    def __init__(self, message: str = "Failed to deserialize user out of session"):
        super().__init__(message)


class ProtocolViolationError(GatepassError):
    """A strategy broke the action protocol (no signal, or more than one)."""

    def __init__(self, strategy_name: str, message: str):
        super().__init__(f'Strategy "{strategy_name}" {message}')
        self.strategy_name = strategy_name


def reason_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return str(status)
