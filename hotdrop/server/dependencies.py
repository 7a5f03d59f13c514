"""Request-scoped access to the process-wide Runtime."""

from __future__ import annotations

from fastapi import Request

from hotdrop.core.runtime import Runtime


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime
