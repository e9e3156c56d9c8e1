"""
HTTP Module - Black Box Interface

Purpose: Framework-neutral request context for the authentication core
Interface: AuthRequest
Hidden: Slot storage, session manager binding
"""

from .request import AuthRequest

__all__ = ["AuthRequest"]
