"""
Action protocol bound to a single strategy attempt.

A strategy reports its outcome by calling exactly one of ``success``,
``fail``, ``redirect``, ``pass_`` or ``error`` on the ``StrategyContext`` it
receives. The call only records a tagged ``Signal``; the pipeline acts on it
once ``authenticate`` returns.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from ..auth.errors import ProtocolViolationError


class ActionKind(str, Enum):
    """The five mutually exclusive actions."""

    SUCCESS = "success"
    FAIL = "fail"
    REDIRECT = "redirect"
    PASS = "pass"
    ERROR = "error"


@dataclass(frozen=True)
class Failure:
    """One strategy's rejection of the request."""

    challenge: Optional[str] = None
    status: Optional[int] = None


@dataclass(frozen=True)
class Signal:
    """What a strategy reported for its attempt."""

    kind: ActionKind
    user: Any = None
    info: Any = None
    failure: Optional[Failure] = None
    url: Optional[str] = None
    status: Optional[int] = None
    error: Optional[BaseException] = None


class StrategyContext:
    """
    Per-request, per-attempt binding of the action protocol.

    A new context is created for every strategy attempt, so concurrent
    requests never share action state. Once the attempt is finished the
    context is closed and any late signal raises ``ProtocolViolationError``.
    """

    def __init__(self, request: Any, strategy_name: str, index: int = 0):
        self.request = request
        self.strategy_name = strategy_name
        self.index = index
        self._signal: Optional[Signal] = None
        self._closed = False

    @property
    def signal(self) -> Optional[Signal]:
        return self._signal

    @property
    def concluded(self) -> bool:
        return self._signal is not None

    def close(self) -> None:
        self._closed = True

    def _conclude(self, signal: Signal) -> Signal:
        if self._closed:
            raise ProtocolViolationError(
                self.strategy_name,
                f"signaled {signal.kind.value} after its attempt had finished",
            )
        if self._signal is not None:
            raise ProtocolViolationError(
                self.strategy_name,
                f"signaled {signal.kind.value} after already signaling {self._signal.kind.value}",
            )
        self._signal = signal
        return signal

    def success(self, user: Any, info: Any = None) -> Signal:
        """Authenticate ``user``, with optional ``info`` for the application."""
        return self._conclude(Signal(ActionKind.SUCCESS, user=user, info=info))

    def fail(
        self,
        challenge_or_status: Union[str, int, None] = None,
        status: Optional[int] = None,
    ) -> Signal:
        """
        Reject the request.

        A string first argument is a challenge (for ``WWW-Authenticate``),
        an integer is a status code.
        """
        challenge: Optional[str] = None
        if isinstance(challenge_or_status, int) and not isinstance(challenge_or_status, bool):
            status = challenge_or_status
        elif challenge_or_status is not None:
            challenge = str(challenge_or_status)
        failure = Failure(challenge=challenge, status=status)
        return self._conclude(Signal(ActionKind.FAIL, failure=failure))

    def redirect(self, url: str, status: int = 302) -> Signal:
        """Send the user agent to ``url``, for example a third-party login page."""
        return self._conclude(Signal(ActionKind.REDIRECT, url=url, status=status or 302))

    def pass_(self) -> Signal:
        """Make no decision; the request continues as if this strategy were absent."""
        return self._conclude(Signal(ActionKind.PASS))

    def error(self, err: BaseException) -> Signal:
        """Report an internal fault such as an unavailable user directory."""
        return self._conclude(Signal(ActionKind.ERROR, error=err))
