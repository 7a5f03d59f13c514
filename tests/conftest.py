"""Shared test fixtures for hotdrop."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from hotdrop.config import ServerConfig
from hotdrop.core.blob_store import BlobStore
from hotdrop.core.builder import DeploymentBuilder
from hotdrop.core.hasher import sha256_hex
from hotdrop.core.loader import ActiveDeploymentLoader
from hotdrop.core.registry import DeploymentRegistry
from hotdrop.models.deployments import FileDescriptor
from hotdrop.server.app import create_app

TEST_TOKEN = "test-deploy-token-0123456789"

LOGIC_TEMPLATE = '''
VERSION = "{version}"


def handle_interaction(context, interaction):
    return {{"version": VERSION, "interaction": interaction}}


async def handle_message(context, message):
    context.process_state.setdefault("messages", []).append(message)
    return {{"version": VERSION, "count": len(context.process_state["messages"])}}


def handle_http_request(context, request, response):
    response.headers["x-deployment-version"] = VERSION
    return {{"version": VERSION, "method": request.method}}
'''


def logic_source(version: str) -> str:
    """Source of a complete entry module reporting *version*."""
    return LOGIC_TEMPLATE.format(version=version)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Provide a fresh storage root."""
    return tmp_path / "data"


@pytest.fixture
def settings(data_dir: Path) -> ServerConfig:
    """ServerConfig rooted in the temp data dir with a known deploy token."""
    return ServerConfig(
        data_dir=data_dir,
        deploy_token=TEST_TOKEN,
        environment="development",
        _env_file=None,
    )


@pytest.fixture
def blob_store(data_dir: Path) -> BlobStore:
    return BlobStore(data_dir / "blobs")


@pytest.fixture
def registry(data_dir: Path) -> DeploymentRegistry:
    return DeploymentRegistry(data_dir / "latest_deployment")


@pytest.fixture
def builder(
    blob_store: BlobStore, registry: DeploymentRegistry, data_dir: Path
) -> DeploymentBuilder:
    return DeploymentBuilder(blob_store, data_dir / "deployments", registry)


@pytest.fixture
def loader(registry: DeploymentRegistry, data_dir: Path) -> ActiveDeploymentLoader:
    return ActiveDeploymentLoader(registry, data_dir / "deployments")


@pytest.fixture
def make_file() -> Callable[..., FileDescriptor]:
    """Factory fixture: a FileDescriptor whose digest matches its content."""

    def _factory(
        filename: str, content: str, *, inline: bool = True
    ) -> FileDescriptor:
        return FileDescriptor(
            filename=filename,
            digest=sha256_hex(content.encode("utf-8")),
            content=content if inline else None,
        )

    return _factory


@pytest.fixture
def deploy_logic(
    builder: DeploymentBuilder, make_file: Callable[..., FileDescriptor]
) -> Callable[..., str]:
    """Factory fixture: build and publish an entry module reporting *version*."""

    def _deploy(version: str = "v1", *extra: FileDescriptor) -> str:
        return builder.build([make_file("index.py", logic_source(version)), *extra])

    return _deploy


@pytest.fixture
def deploy_token() -> str:
    """The deploy token configured in ``settings``."""
    return TEST_TOKEN


@pytest.fixture
def app(settings: ServerConfig):
    """FastAPI app backed by the temp data dir."""
    return create_app(settings)


@pytest.fixture
def client(app):
    """TestClient that returns 500 responses instead of raising."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
