"""Generic HTTP route served by the active deployment.

The route is mounted at ``ServerConfig.logic_route`` for every method.  The
deployed ``handle_http_request(context, request, response)`` may return a
Starlette ``Response``, which is sent as-is, or any JSON-serializable
value; status code and headers set on *response* apply to the latter.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request, Response

LOGIC_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


async def handle_logic_request(request: Request, response: Response) -> Any:
    runtime = request.app.state.runtime
    return await runtime.dispatcher.handle_http_request(request, response)
