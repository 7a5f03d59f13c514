"""Server configuration — env-driven.

Centralized config using pydantic-settings.  Reads from a .env file and
HOTDROP_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from hotdrop.models.deployments import LinkMode


class ServerConfig(BaseSettings):
    """Server configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export HOTDROP_DEPLOY_TOKEN=s3cret
        export HOTDROP_DATA_DIR=/srv/hotdrop
        export HOTDROP_LOG_FORMAT=text

    Or via .env file::

        HOTDROP_ENVIRONMENT=production
        HOTDROP_PORT=3000
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="HOTDROP_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"
    debug: bool = False

    # Storage
    data_dir: Path = Path(".data")

    # Deploy endpoint
    deploy_token: SecretStr = SecretStr("")
    max_body_bytes: int = 10 * 1048576
    verify_digests: bool = True
    link_mode: LinkMode = LinkMode.AUTO

    # Deployed logic
    entry_filename: str = "index.py"
    logic_route: str = "/logic"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8080

    # Remote server targeted by ``hotdrop push``
    server_url: str = "http://localhost:8080"

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"

    @property
    def blobs_path(self) -> Path:
        return self.data_dir / "blobs"

    @property
    def deployments_path(self) -> Path:
        return self.data_dir / "deployments"

    @property
    def pointer_path(self) -> Path:
        return self.data_dir / "latest_deployment"

    @property
    def credentials_path(self) -> Path:
        return self.data_dir / "credentials"


# Module-level singleton; import as `from hotdrop.config import config`
config = ServerConfig()
