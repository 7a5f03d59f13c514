"""Runtime — wires the hotdrop subsystems together from configuration.

The Runtime owns one BlobStore, DeploymentRegistry, DeploymentBuilder,
ActiveDeploymentLoader and EventDispatcher, all rooted in the configured
data directory.  The HTTP server and the CLI both go through it.
"""

from __future__ import annotations

import hmac
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from hotdrop.config import ServerConfig
from hotdrop.core.blob_store import BlobStore
from hotdrop.core.builder import DeploymentBuilder
from hotdrop.core.dispatcher import EventDispatcher
from hotdrop.core.errors import Unauthorized
from hotdrop.core.loader import ActiveDeploymentLoader
from hotdrop.core.production_guard import enforce_production_constraints
from hotdrop.core.registry import DeploymentRegistry
from hotdrop.models.context import DeploymentContext
from hotdrop.models.deployments import FileDescriptor

logger = logging.getLogger(__name__)


class Runtime:
    """All hotdrop subsystems for one data directory.

    Parameters
    ----------
    settings:
        Server configuration.  Uses defaults (and the environment) if not
        provided.
    chat_client, db, app:
        Opaque handles exposed to deployed logic through the context.
    """

    def __init__(
        self,
        settings: ServerConfig | None = None,
        *,
        chat_client: Any = None,
        db: Any = None,
        app: Any = None,
    ) -> None:
        self.settings = settings or ServerConfig()

        # Fails hard if production constraints are violated
        enforce_production_constraints(self.settings)

        # Core subsystems
        self.blob_store = BlobStore(
            self.settings.blobs_path, verify_digests=self.settings.verify_digests
        )
        self.registry = DeploymentRegistry(self.settings.pointer_path)
        self.builder = DeploymentBuilder(
            self.blob_store,
            self.settings.deployments_path,
            self.registry,
            link_mode=self.settings.link_mode,
        )
        self.loader = ActiveDeploymentLoader(
            self.registry,
            self.settings.deployments_path,
            entry_filename=self.settings.entry_filename,
        )
        self.context = DeploymentContext(
            chat_client=chat_client,
            db=db,
            app=app,
            credentials=load_credentials(self.settings.credentials_path),
            settings=self.settings,
        )
        self.dispatcher = EventDispatcher(self.loader, self.context)

    # ------------------------------------------------------------------
    # Deploy
    # ------------------------------------------------------------------

    def check_token(self, token: str) -> None:
        """Raise ``Unauthorized`` unless *token* matches the deploy token.

        An unset deploy token rejects every request.
        """
        expected = self.settings.deploy_token.get_secret_value()
        if not expected or not hmac.compare_digest(
            token.encode("utf-8"), expected.encode("utf-8")
        ):
            logger.warning("Rejected deploy request with an invalid token.")
            raise Unauthorized("Invalid deploy key")

    def deploy(self, token: str, files: Sequence[FileDescriptor]) -> str:
        """Authenticate, then build and publish *files*."""
        self.check_token(token)
        return self.builder.build(files)

    def current_files(self) -> list[str]:
        """Files of the active deployment, empty when there is none."""
        digest = self.registry.current()
        return self.builder.list_files(digest) if digest else []


def load_credentials(credentials_dir: Path) -> dict[str, Any]:
    """Parse every ``*.json`` file in *credentials_dir*, keyed by file stem.

    A missing directory yields an empty mapping; a malformed file raises.
    """
    if not credentials_dir.is_dir():
        return {}
    credentials: dict[str, Any] = {}
    for path in sorted(credentials_dir.glob("*.json")):
        try:
            credentials[path.stem] = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid credentials file '{path}': {exc}") from exc
    if credentials:
        logger.info("Loaded %d credential file(s).", len(credentials))
    return credentials
