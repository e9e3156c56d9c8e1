"""
Session Module - Black Box Interface

Purpose: Persist login state and one-shot messages between requests
Interface: Session, SessionManager.log_in(), log_out(), set_flash(), pluck_return_to()
Hidden: Storage backend, key layout, session id generation

Replaceable with any session backend implementing SessionBackend
(Redis, in-memory, database).
"""

from .manager import FlashKind, SessionManager
from .session import MemorySessionBackend, RedisSessionBackend, Session, SessionBackend

__all__ = [
    "Session",
    "SessionBackend",
    "RedisSessionBackend",
    "MemorySessionBackend",
    "SessionManager",
    "FlashKind",
]
