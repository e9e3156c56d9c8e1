import json
import logging
import secrets
from typing import Any, Dict, Iterator, MutableMapping, Optional, Protocol

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    """Generate a cryptographically secure session identifier (32 bytes)."""
    return secrets.token_urlsafe(32)


class SessionBackend(Protocol):
    """Storage contract for session data, keyed by session id."""

    async def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def store(self, session_id: str, data: Dict[str, Any]) -> None:
        ...

    async def delete(self, session_id: str) -> None:
        ...


class RedisSessionBackend:
    def __init__(self, redis_client, default_ttl: int = 3600, prefix: str = "session:"):
        """
        Initialize Redis session storage.

        Args:
            redis_client: Async Redis client
            default_ttl: Session TTL in seconds, refreshed on every save
            prefix: Key prefix for session entries
        """
        self.redis = redis_client
        self.default_ttl = default_ttl
        self.prefix = prefix

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    async def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        """
        Get session data.

        Returns:
            Session data dict or None if not found or expired
        """
        data = await self.redis.get(self._key(session_id))
        if not data:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return json.loads(data)

    async def store(self, session_id: str, data: Dict[str, Any]) -> None:
        await self.redis.setex(self._key(session_id), self.default_ttl, json.dumps(data))

    async def delete(self, session_id: str) -> None:
        await self.redis.delete(self._key(session_id))


class MemorySessionBackend:
    """Process-local backend for development and tests."""

    def __init__(self):
        self.sessions: Dict[str, str] = {}

    async def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        data = self.sessions.get(session_id)
        return json.loads(data) if data is not None else None

    async def store(self, session_id: str, data: Dict[str, Any]) -> None:
        # Round-trip through JSON so values behave exactly as with Redis
        self.sessions[session_id] = json.dumps(data)

    async def delete(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)


class Session(MutableMapping):
    """
    Mutable session state bound to a backend.

    ``save``, ``regenerate`` and ``destroy`` talk to the backend and may
    fail; failures propagate to the caller.
    """

    def __init__(
        self,
        backend: SessionBackend,
        session_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        self.backend = backend
        self._id = session_id or new_session_id()
        self._data: Dict[str, Any] = dict(data or {})
        self.is_new = session_id is None
        self.modified = False
        self.persisted = not self.is_new
        self.destroyed = False

    @classmethod
    async def load(cls, backend: SessionBackend, session_id: Optional[str] = None) -> "Session":
        """Load an existing session, or start a new one if the id is unknown."""
        if session_id:
            data = await backend.load(session_id)
            if data is not None:
                return cls(backend, session_id, data)
            logger.debug("Session not found, starting a new one")
        return cls(backend)

    @property
    def id(self) -> str:
        return self._id

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.modified = True

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self.modified = True

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    async def save(self) -> None:
        """Persist the current data under the current id."""
        await self.backend.store(self._id, self.to_dict())
        self.modified = False
        self.persisted = True
        self.destroyed = False

    async def regenerate(self) -> None:
        """Drop the stored session and continue with an empty one under a new id."""
        await self.backend.delete(self._id)
        self._id = new_session_id()
        self._data = {}
        self.modified = True
        self.persisted = False

    async def destroy(self) -> None:
        """Delete the stored session; the cookie should be cleared."""
        await self.backend.delete(self._id)
        self._data = {}
        self.modified = False
        self.persisted = False
        self.destroyed = True
