"""Liveness probe, reporting which deployment is active."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from hotdrop import __version__
from hotdrop.core.runtime import Runtime
from hotdrop.server.dependencies import get_runtime

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(runtime: Runtime = Depends(get_runtime)) -> dict:
    """Returns 200 whenever the process is up, deployed or not."""
    return {
        "status": "healthy",
        "service": "hotdrop",
        "version": __version__,
        "deployment": runtime.registry.current(),
    }
