"""Strategy interfaces following Black Box Design principles."""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Optional, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from ..pipeline.actions import StrategyContext
    from ..pipeline.options import AuthenticateOptions


@runtime_checkable
class StrategyLike(Protocol):
    """Anything with a name and an ``authenticate`` method can act as a strategy."""

    name: str

    def authenticate(
        self, ctx: "StrategyContext", options: "AuthenticateOptions"
    ) -> Union[Awaitable[Any], Any]:
        """
        Inspect ``ctx.request`` and signal exactly one action on ``ctx``.

        Args:
            ctx: Action protocol bound to this request and attempt
            options: Options of the pipeline running this strategy

        May be sync or async; the return value is ignored.
        """
        ...


class Strategy(ABC):
    """
    Base class for authentication strategies.

    Strategies hold configuration only. Everything about the current request
    arrives through the ``StrategyContext`` passed to ``authenticate``.
    """

    name: str = ""

    def __init__(self, name: Optional[str] = None):
        if name:
            self.name = name

    @abstractmethod
    async def authenticate(self, ctx: "StrategyContext", options: "AuthenticateOptions") -> Any:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def is_strategy(candidate: Any) -> bool:
    """True for strategy instances, False for names and other values."""
    return not isinstance(candidate, str) and callable(getattr(candidate, "authenticate", None))
