"""hotdrop data models — Pydantic v2."""

from hotdrop.models.context import DeploymentContext
from hotdrop.models.deployments import (
    ContentEncoding,
    DeployRequest,
    DeployResponse,
    FileDescriptor,
    LinkMode,
)

__all__ = [
    "ContentEncoding",
    "DeployRequest",
    "DeployResponse",
    "DeploymentContext",
    "FileDescriptor",
    "LinkMode",
]
