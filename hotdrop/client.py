"""Deploy client — pushes a local directory to a hotdrop server.

A push is lean by default: the first request carries digests only, so
blobs the server already holds are never re-uploaded.  If the server
answers ``MISSING_BLOB_DATA``, the request is repeated with every file's
content inline.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import httpx

from hotdrop.core.hasher import sha256_hex
from hotdrop.models.deployments import ContentEncoding, DeployResponse, FileDescriptor

logger = logging.getLogger(__name__)

_SKIPPED_DIRS = {"__pycache__", ".git"}
_SKIPPED_SUFFIXES = {".pyc", ".pyo"}


class DeployRejected(RuntimeError):
    """The server refused a deploy request."""

    def __init__(self, status_code: int, body: Any) -> None:
        self.status_code = status_code
        self.body = body
        self.code = ""
        message = str(body)
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            self.code = body["error"].get("code", "")
            message = body["error"].get("message", message)
        super().__init__(f"Deploy rejected ({status_code}): {message}")


def collect_files(root: Path) -> list[FileDescriptor]:
    """Describe every regular file under *root* as a deploy entry.

    Names are relative POSIX paths.  UTF-8 text is sent inline as-is,
    anything else as base64.  Byte-code caches and ``.git`` are skipped.
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Not a directory: {root}")

    files: list[FileDescriptor] = []
    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root)
        if not path.is_file() or _SKIPPED_DIRS.intersection(rel.parts):
            continue
        if path.suffix in _SKIPPED_SUFFIXES:
            continue
        raw = path.read_bytes()
        try:
            content, encoding = raw.decode("utf-8"), ContentEncoding.UTF8
        except UnicodeDecodeError:
            content = base64.b64encode(raw).decode("ascii")
            encoding = ContentEncoding.BASE64
        files.append(
            FileDescriptor(
                filename=rel.as_posix(),
                digest=sha256_hex(raw),
                content=content,
                encoding=encoding,
            )
        )
    return files


class DeployClient:
    """HTTP client for ``POST /deploy``.

    Parameters
    ----------
    base_url:
        Root URL of the hotdrop server.
    token:
        Shared deploy secret.
    transport:
        Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._token = token
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def __enter__(self) -> "DeployClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def push(self, files: Sequence[FileDescriptor], *, lean: bool = True) -> DeployResponse:
        """Deploy *files*; returns the server's acknowledgement.

        Raises
        ------
        DeployRejected
            On any non-2xx answer other than a lean miss.
        """
        if lean:
            try:
                return self._post([f.without_content() for f in files])
            except DeployRejected as exc:
                if exc.code != "MISSING_BLOB_DATA":
                    raise
                logger.info("Server lacks some blobs; resending with content.")
        return self._post(files)

    def _post(self, files: Sequence[FileDescriptor]) -> DeployResponse:
        payload = {
            "token": self._token,
            "files": [f.model_dump(mode="json", exclude_none=True) for f in files],
        }
        response = self._client.post("/deploy", json=payload)
        if response.is_success:
            return DeployResponse.model_validate(response.json())
        try:
            body = response.json()
        except ValueError:
            body = response.text
        raise DeployRejected(response.status_code, body)
