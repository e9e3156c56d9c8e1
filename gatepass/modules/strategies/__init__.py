"""
Strategies Module - Black Box Interface

Purpose: Built-in authentication strategies
Interface: SessionStrategy

Application strategies (password, bearer token, OAuth) subclass
gatepass.modules.auth.interfaces.Strategy and are registered with
Authenticator.use().
"""

from .session import SessionStrategy

__all__ = ["SessionStrategy"]
