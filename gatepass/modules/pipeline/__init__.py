"""
Pipeline Module - Black Box Interface

Purpose: Run a chain of strategies against one request
Interface: AuthenticateHandler, StrategyContext, AuthenticateOptions, outcomes
Hidden: Failure accumulation, success side effects, outcome aggregation
"""

from .actions import ActionKind, Failure, Signal, StrategyContext
from .authenticate import AuthenticateHandler
from .options import AuthenticateOptions
from .outcomes import CONTINUE, Continue, Outcome, Redirect, Respond

__all__ = [
    "AuthenticateHandler",
    "AuthenticateOptions",
    "StrategyContext",
    "ActionKind",
    "Failure",
    "Signal",
    "Outcome",
    "Continue",
    "CONTINUE",
    "Redirect",
    "Respond",
]
