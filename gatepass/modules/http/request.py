"""
Framework-neutral request context consumed by the authentication core.

The HTTP adapter wraps every native request in an ``AuthRequest`` that
carries the session, the "current user" slot and the login helpers.
"""

import logging
from typing import Any, Dict, Optional

from ..session.manager import FlashKind, SessionManager
from ..session.session import Session

logger = logging.getLogger(__name__)


class AuthRequest:
    """
    Per-request authentication state.

    Slots (the current user, ``assign_property`` targets) are stored on the
    context rather than on the native request so the core stays
    framework-agnostic. The native request remains available as ``native``.
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        *,
        user_property: str = "user",
        session_manager: Optional[SessionManager] = None,
        native: Any = None,
    ):
        self.session = session
        self.user_property = user_property
        self.session_manager = session_manager
        self.native = native
        self.auth_info: Any = None
        self._slots: Dict[str, Any] = {}

    def get(self, name: str, default: Any = None) -> Any:
        return self._slots.get(name, default)

    def set(self, name: str, value: Any) -> None:
        self._slots[name] = value

    @property
    def user(self) -> Any:
        return self._slots.get(self.user_property)

    @user.setter
    def user(self, value: Any) -> None:
        self._slots[self.user_property] = value

    @property
    def headers(self) -> Any:
        """Headers of the native request, or an empty mapping."""
        return getattr(self.native, "headers", {})

    def is_authenticated(self) -> bool:
        return bool(self.user)

    def is_unauthenticated(self) -> bool:
        return not self.is_authenticated()

    async def log_in(self, user: Any, *, session: bool = True, keep_session_info: bool = False) -> None:
        """
        Initiate a login session for ``user``.

        Args:
            user: The authenticated user
            session: Save login state in the session
            keep_session_info: Carry the previous session fields across regeneration

        The user slot is cleared again if persisting the session fails.
        """
        self.user = user
        if not session or self.session_manager is None:
            return
        try:
            await self.session_manager.log_in(self, user, keep_session_info=keep_session_info)
        except Exception:
            self.user = None
            raise

    async def log_out(self, *, keep_session_info: bool = False) -> None:
        """Terminate an existing login session."""
        self.user = None
        if self.session_manager is not None:
            await self.session_manager.log_out(self, keep_session_info=keep_session_info)

    async def flash(self, kind: FlashKind, message: str) -> None:
        """Set a flash message on the session."""
        if self.session_manager is None:
            logger.debug("Flash message dropped: no session manager bound")
            return
        await self.session_manager.set_flash(self, kind, message)
