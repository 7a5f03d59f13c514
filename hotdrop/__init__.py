"""hotdrop: hot-swappable code deployment over a content-addressed store.

A long-running process receives new code over HTTP and serves it on the
very next event, without restarting:
  - Content-addressed, write-once blob store (SHA-256)
  - Deployments materialized as hard-linked file trees, one per digest set
  - Durable latest-deployment pointer, replaced atomically
  - Entry module re-executed on every inbound event (chat or HTTP)
  - FastAPI server, httpx deploy client, Typer CLI
"""

__version__ = "0.2.0"
__description__ = (
    "Hot-swappable code deployment over a content-addressed blob store"
)

from hotdrop.core.blob_store import BlobStore
from hotdrop.core.builder import DeploymentBuilder
from hotdrop.core.loader import ActiveDeploymentLoader
from hotdrop.core.registry import DeploymentRegistry
from hotdrop.core.runtime import Runtime

__all__ = [
    "ActiveDeploymentLoader",
    "BlobStore",
    "DeploymentBuilder",
    "DeploymentRegistry",
    "Runtime",
    "__version__",
]
