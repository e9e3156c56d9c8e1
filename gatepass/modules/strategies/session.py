"""
Strategy that restores login state from the session.

It does not authenticate the session itself: verifying the session cookie
is the job of the session middleware. It only deserializes the user that a
previous login stored, and never signals success or fail.
"""

import logging
from typing import Any, Awaitable, Callable

from ..auth.interfaces import Strategy
from ..pipeline.actions import Signal, StrategyContext
from ..pipeline.options import AuthenticateOptions
from ..session.manager import SessionManager

logger = logging.getLogger(__name__)

DeserializeUser = Callable[[Any, Any], Awaitable[Any]]


class SessionStrategy(Strategy):
    """Populate the request's user slot from the serialized session user."""

    name = "session"

    def __init__(self, deserialize_user: DeserializeUser, session_manager: SessionManager):
        """
        Initialize session strategy.

        Args:
            deserialize_user: Async callable ``(serialized, request) -> user | False``
            session_manager: Manager that knows where the user is stored
        """
        super().__init__()
        self._deserialize_user = deserialize_user
        self._session_manager = session_manager

    async def authenticate(self, ctx: StrategyContext, options: AuthenticateOptions) -> Signal:
        request = ctx.request
        serialized = self._session_manager.get_user(request)

        # No login state is not a credentials failure
        if serialized is None:
            return ctx.pass_()

        try:
            user = await self._deserialize_user(serialized, request)
            if not user:
                # The user existed at login time but has since been removed
                logger.info("Clearing stale user from session")
                await self._session_manager.clear_user(request)
            else:
                request.user = user
        except Exception as exc:
            return ctx.error(exc)

        return ctx.pass_()
