"""``POST /deploy`` — receive a deployment over the network.

The token is checked before anything touches the disk.  The build itself
(blob writes, linking, pointer persistence) runs in a worker thread so
concurrent chat events and logic requests keep flowing.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from hotdrop.core.runtime import Runtime
from hotdrop.models.deployments import DeployRequest, DeployResponse
from hotdrop.server.dependencies import get_runtime

logger = logging.getLogger(__name__)
router = APIRouter(tags=["deploy"])


@router.post("/deploy", response_model=DeployResponse)
async def deploy(
    body: DeployRequest, runtime: Runtime = Depends(get_runtime)
) -> DeployResponse:
    """Store the files, materialize the deployment and make it active."""
    runtime.check_token(body.token)
    digest = await run_in_threadpool(runtime.builder.build, body.files)
    return DeployResponse(deployment=digest, files=len(body.files))
