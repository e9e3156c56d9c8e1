"""
Ordered handler chain used for serialization, deserialization and
auth-info transformation.

Handlers are tried in registration order. Each handler produces exactly one
outcome: a result (stop), a skip (advance to the next handler with the same
input) or an error (stop and propagate).
"""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple, Type

from ..auth.errors import ChainExhaustedError

logger = logging.getLogger(__name__)


class _Skip:
    """Sentinel returned by a handler that declines to handle a value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "SKIP"


SKIP = _Skip()


class OutcomeKind(str, Enum):
    """Kind of outcome a single handler invocation produced."""

    RESULT = "result"
    SKIP = "skip"
    ERROR = "error"


@dataclass(frozen=True)
class ChainOutcome:
    """Tagged outcome of one handler invocation."""

    kind: OutcomeKind
    value: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def result(cls, value: Any) -> "ChainOutcome":
        return cls(OutcomeKind.RESULT, value=value)

    @classmethod
    def skip(cls) -> "ChainOutcome":
        return cls(OutcomeKind.SKIP)

    @classmethod
    def failed(cls, error: BaseException) -> "ChainOutcome":
        return cls(OutcomeKind.ERROR, error=error)


def is_defined(value: Any) -> bool:
    """Default terminal rule: anything except ``None`` ends the chain."""
    return value is not None


def _accepts_request(handler: Callable) -> bool:
    """Return True when the handler takes ``(value, request)``."""
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return False

    positional = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return True
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            positional += 1
    return positional >= 2


class HandlerChain:
    """
    Ordered list of handlers with try-in-order-with-skip semantics.

    Registering and running are separate operations: ``register`` only
    appends, ``run`` only traverses.
    """

    def __init__(
        self,
        name: str,
        *,
        terminal: Callable[[Any], bool] = is_defined,
        fallback_to_input: bool = False,
        exhausted_error: Type[ChainExhaustedError] = ChainExhaustedError,
    ):
        """
        Initialize an empty chain.

        Args:
            name: Human readable chain name used in logs
            terminal: Predicate deciding whether a handler's return value ends the chain
            fallback_to_input: Return the input unchanged when every handler skips
            exhausted_error: Error raised on exhaustion when not falling back
        """
        self.name = name
        self._terminal = terminal
        self._fallback_to_input = fallback_to_input
        self._exhausted_error = exhausted_error
        self._handlers: List[Tuple[Callable, bool]] = []

    def __len__(self) -> int:
        return len(self._handlers)

    @property
    def handlers(self) -> Tuple[Callable, ...]:
        """Registered handlers in try order."""
        return tuple(handler for handler, _ in self._handlers)

    def register(self, handler: Callable) -> Callable:
        """
        Append a handler to the end of the chain.

        Returns the handler unchanged so this can be used as a decorator.

        Raises:
            TypeError: If handler is not callable
        """
        if not callable(handler):
            raise TypeError(f"{self.name} handler must be callable, got {type(handler).__name__}")
        self._handlers.append((handler, _accepts_request(handler)))
        return handler

    def clear(self) -> None:
        """Remove every handler (teardown only)."""
        self._handlers.clear()

    async def invoke(self, index: int, value: Any, request: Any = None) -> ChainOutcome:
        """Run the handler at ``index`` once and classify what it produced."""
        handler, wants_request = self._handlers[index]
        try:
            result = handler(value, request) if wants_request else handler(value)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            return ChainOutcome.failed(exc)

        if result is SKIP or not self._terminal(result):
            return ChainOutcome.skip()
        return ChainOutcome.result(result)

    async def run(self, value: Any, request: Any = None) -> Any:
        """
        Traverse the chain for ``value``.

        Args:
            value: Input handed unchanged to every handler
            request: Optional request context for request-aware handlers

        Returns:
            The first terminal result, or ``value`` itself when the chain
            falls back to its input

        Raises:
            ChainExhaustedError: If every handler skipped and no fallback applies
        """
        for index in range(len(self._handlers)):
            outcome = await self.invoke(index, value, request)
            if outcome.kind is OutcomeKind.ERROR:
                raise outcome.error
            if outcome.kind is OutcomeKind.RESULT:
                return outcome.value
            logger.debug("%s handler %d skipped", self.name, index)

        if self._fallback_to_input:
            return value
        raise self._exhausted_error()
