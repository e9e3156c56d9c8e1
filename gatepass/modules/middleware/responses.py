"""
Conversion of pipeline outcomes and gatepass errors into Starlette responses.
"""

from typing import Any, Dict, Optional

from fastapi import Response
from fastapi.responses import PlainTextResponse

from ..pipeline.outcomes import Redirect, Respond


def to_response(outcome: Any) -> Optional[Response]:
    """
    Build the response for a pipeline outcome.

    Args:
        outcome: ``Continue``, ``Redirect``, ``Respond``, or a value returned
            by an application callback

    Returns:
        A response that ends the request, or None to let it continue.
        Responses returned by callbacks are passed through unchanged.
    """
    if isinstance(outcome, Response):
        return outcome
    if isinstance(outcome, Redirect):
        return Response(status_code=outcome.status, headers=outcome.headers)
    if isinstance(outcome, Respond):
        return PlainTextResponse(outcome.body, status_code=outcome.status, headers=dict(outcome.headers))
    return None


REQUEST_ID_HEADER = "x-request-id"


def request_id_of(request: Any) -> Optional[str]:
    """Return the caller-supplied request id used as the JSON-RPC ``id``."""
    return request.headers.get(REQUEST_ID_HEADER)


def format_error(
    status_code: int,
    message: str,
    error_format: str = "json",
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Format error response based on configured format."""
    if error_format == "jsonrpc":
        return {
            "jsonrpc": "2.0",
            "error": {
                "code": -32700 if status_code == 401 else -32603,
                "message": message
            },
            "id": request_id
        }
    return {
        "error": message,
        "status": status_code
    }
