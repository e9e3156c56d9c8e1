"""
Shared pytest fixtures for gatepass tests.

This module provides common fixtures including:
- Scripted strategies that signal a fixed action and count their calls
- Redis mocks for session backend tests
- Authenticators with an in-memory user table
"""

import os
import sys
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gatepass.modules.auth.authenticator import Authenticator
from gatepass.modules.auth.interfaces import Strategy
from gatepass.modules.session.session import MemorySessionBackend, Session


USERS: Dict[int, Dict[str, Any]] = {
    1: {"id": 1, "username": "alice"},
    2: {"id": 2, "username": "bob"},
}


# =============================================================================
# Strategy doubles
# =============================================================================

class ScriptedStrategy(Strategy):
    """
    Strategy that always signals the same action.

    Usage:
        strategy = ScriptedStrategy("basic", "fail", "Basic realm=x")
        authenticator.use(strategy)
        ...
        assert strategy.calls == 1
    """

    def __init__(self, name: str, action: str, *args: Any, **kwargs: Any):
        super().__init__(name)
        self.action = action
        self.args = args
        self.kwargs = kwargs
        self.calls = 0
        self.last_options = None

    async def authenticate(self, ctx, options):
        self.calls += 1
        self.last_options = options
        if self.action == "pass":
            return ctx.pass_()
        return getattr(ctx, self.action)(*self.args, **self.kwargs)


class SyncStrategy:
    """Duck-typed strategy with a synchronous authenticate method."""

    def __init__(self, name: str, user: Any):
        self.name = name
        self.user = user

    def authenticate(self, ctx, options):
        ctx.success(self.user)


class HeaderStrategy(Strategy):
    """Succeeds when the request carries ``X-User: <id>``, fails with a challenge otherwise."""

    def __init__(self, name: str = "header", challenge: Optional[str] = "Header"):
        super().__init__(name)
        self.challenge = challenge

    async def authenticate(self, ctx, options):
        user_id = ctx.request.headers.get("x-user")
        if user_id and int(user_id) in USERS:
            return ctx.success(USERS[int(user_id)], {"message": "Welcome", "type": "info"})
        return ctx.fail(self.challenge)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def mock_redis():
    """Create a mock Redis client."""
    redis = AsyncMock()
    redis.setex = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.delete = AsyncMock()
    return redis


@pytest.fixture
def memory_backend():
    """In-memory session backend."""
    return MemorySessionBackend()


@pytest.fixture
def authenticator():
    """Authenticator that stores user ids in the session."""
    auth = Authenticator()

    @auth.serializer
    def serialize(user):
        return user["id"]

    @auth.deserializer
    async def deserialize(user_id):
        return USERS.get(user_id, False)

    return auth


@pytest.fixture
def make_request(authenticator, memory_backend):
    """Factory for request contexts bound to a fresh session."""

    def _make(session: Optional[Session] = None, native: Any = None, with_session: bool = True):
        if session is None and with_session:
            session = Session(memory_backend)
        return authenticator.request_for(session, native=native)

    return _make


@pytest.fixture
def callback_calls() -> List[tuple]:
    return []


@pytest.fixture
def recording_callback(callback_calls):
    """Callback that records its arguments and returns a marker."""

    def _callback(*args):
        callback_calls.append(args)
        return "handled"

    return _callback
