"""
Session manager: persists login state and one-shot messages in the session.

Layout of the data it owns inside a session::

    {
        "<key>": {"user": <serialized user>},
        "flash": {"error": "...", "success": "...", "info": "..."},
        "messages": ["..."],
        "return_to": "/where/to/go",
    }
"""

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

from ..auth.errors import SessionSupportError
from .session import Session

logger = logging.getLogger(__name__)

FLASH_KEY = "flash"
MESSAGES_KEY = "messages"
RETURN_TO_KEY = "return_to"


class FlashKind(str, Enum):
    """Closed set of flash message kinds."""

    ERROR = "error"
    SUCCESS = "success"
    INFO = "info"


SerializeUser = Callable[[Any, Any], Awaitable[Any]]


class SessionManager:
    """
    Log-in / log-out and message helpers on top of a request's session.

    Every method takes the request context (``AuthRequest``) whose
    ``session`` attribute holds the ``Session``.
    """

    def __init__(self, serialize_user: SerializeUser, key: str = "auth"):
        """
        Initialize the session manager.

        Args:
            serialize_user: Async callable ``(user, request) -> serialized``
            key: Session field under which login state is stored
        """
        self._serialize_user = serialize_user
        self.key = key

    @staticmethod
    def _session(request: Any) -> Session:
        session = getattr(request, "session", None)
        if session is None:
            raise SessionSupportError()
        return session

    async def log_in(self, request: Any, user: Any, *, keep_session_info: bool = False) -> None:
        """
        Establish a login session for ``user``.

        Logic:
        1. Regenerate the session id (guards against session fixation)
        2. Serialize the user through the serializer chain
        3. Optionally restore the fields of the previous session
        4. Store the serialized user and save before any redirect is issued
        """
        session = self._session(request)
        previous = session.to_dict()

        await session.regenerate()

        serialized = await self._serialize_user(user, request)
        if keep_session_info:
            session.update(previous)

        state = dict(session.get(self.key) or {})
        state["user"] = serialized
        session[self.key] = state

        await session.save()
        logger.info("Login session established")

    async def log_out(self, request: Any, *, keep_session_info: bool = False) -> None:
        """
        Terminate the login session.

        The user is removed and saved before the id changes, so the old
        session id never carries a logged in user.
        """
        session = self._session(request)

        state = session.get(self.key)
        if state and "user" in state:
            state = dict(state)
            del state["user"]
            session[self.key] = state
        previous = session.to_dict()

        await session.save()
        await session.regenerate()

        if keep_session_info:
            session.update(previous)
            await session.save()
        logger.info("Login session terminated")

    def get_user(self, request: Any) -> Any:
        """Return the serialized user stored in the session, if any."""
        session = getattr(request, "session", None)
        if session is None:
            return None
        state = session.get(self.key) or {}
        return state.get("user")

    async def clear_user(self, request: Any) -> None:
        """Remove a stale serialized user and persist the change."""
        session = self._session(request)
        state = session.get(self.key)
        if state and "user" in state:
            state = dict(state)
            del state["user"]
            session[self.key] = state
            await session.save()

    def is_authenticated(self, request: Any) -> bool:
        return self.get_user(request) is not None

    def is_unauthenticated(self, request: Any) -> bool:
        return not self.is_authenticated(request)

    async def set_flash(self, request: Any, kind: FlashKind, message: str) -> None:
        """Store a one-shot message of the given kind."""
        session = self._session(request)
        flash = dict(session.get(FLASH_KEY) or {})
        flash[FlashKind(kind).value] = message
        session[FLASH_KEY] = flash
        await session.save()

    async def get_flash(self, request: Any, kind: FlashKind) -> Optional[str]:
        """Read and clear the flash message of the given kind."""
        session = self._session(request)
        flash = dict(session.get(FLASH_KEY) or {})
        message = flash.pop(FlashKind(kind).value, None)
        if message is not None:
            session[FLASH_KEY] = flash
            await session.save()
        return message

    async def set_message(self, request: Any, message: str) -> None:
        """Append to the session's message log."""
        session = self._session(request)
        messages = list(session.get(MESSAGES_KEY) or [])
        messages.append(message)
        session[MESSAGES_KEY] = messages
        await session.save()

    async def get_messages(self, request: Any, *, clear: bool = False) -> List[str]:
        """Return the message log, optionally emptying it."""
        session = self._session(request)
        messages = list(session.get(MESSAGES_KEY) or [])
        if clear and messages:
            del session[MESSAGES_KEY]
            await session.save()
        return messages

    async def set_return_to(self, request: Any, url: str) -> None:
        """Remember where to send the user after the next login."""
        session = self._session(request)
        session[RETURN_TO_KEY] = url
        await session.save()

    async def pluck_return_to(self, request: Any) -> Optional[str]:
        """Read and delete the stored post-login target in one step."""
        session = getattr(request, "session", None)
        if session is None or RETURN_TO_KEY not in session:
            return None
        url = session[RETURN_TO_KEY]
        del session[RETURN_TO_KEY]
        await session.save()
        return url
