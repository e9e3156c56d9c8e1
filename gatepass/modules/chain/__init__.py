"""
Chain Module - Black Box Interface

Purpose: Run an ordered list of handlers until one produces a result
Interface: HandlerChain.register(), HandlerChain.run(), SKIP
Hidden: Calling conventions (sync/async, request-aware), outcome tagging

Used three times by the authenticator: serializers, deserializers and
auth-info transformers.
"""

from .chain import SKIP, ChainOutcome, HandlerChain, OutcomeKind

__all__ = ["HandlerChain", "ChainOutcome", "OutcomeKind", "SKIP"]
