"""
Gatepass - strategy-based authentication for Python web applications.

Register strategies on an ``Authenticator`` and run them against requests
with ``authenticate()``; the first strategy that reaches a decision wins.
"""

__version__ = "0.1.0"

from gatepass.modules.auth.authenticator import Authenticator
from gatepass.modules.auth.errors import AuthenticationError, GatepassError
from gatepass.modules.auth.interfaces import Strategy
from gatepass.modules.chain import SKIP
from gatepass.modules.pipeline import AuthenticateOptions, StrategyContext
from gatepass.modules.session.manager import FlashKind

__all__ = [
    "__version__",
    "Authenticator",
    "AuthenticateOptions",
    "AuthenticationError",
    "FlashKind",
    "GatepassError",
    "SKIP",
    "Strategy",
    "StrategyContext",
]
