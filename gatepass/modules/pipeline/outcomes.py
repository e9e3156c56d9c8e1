"""
Framework-neutral outcomes produced by the authentication pipeline.

The pipeline never builds wire responses itself; the HTTP adapter turns
these into Starlette responses (see ``gatepass.modules.middleware``).
"""

from dataclasses import dataclass, field
from typing import Dict, Union


@dataclass(frozen=True)
class Continue:
    """Hand the request on to the next middleware or route."""


@dataclass(frozen=True)
class Redirect:
    """Redirect the user agent; the response body is always empty."""

    url: str
    status: int = 302

    @property
    def headers(self) -> Dict[str, str]:
        return {"Location": self.url, "Content-Length": "0"}


@dataclass(frozen=True)
class Respond:
    """Terminate the request with a status, headers and a short body."""

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""


CONTINUE = Continue()

Outcome = Union[Continue, Redirect, Respond]
