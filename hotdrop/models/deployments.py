"""Deploy request and manifest models (Pydantic v2, frozen)."""

from __future__ import annotations

import base64
import binascii
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from hotdrop.core.errors import BadRequest


class ContentEncoding(str, Enum):
    """How inline file content is carried on the wire."""

    UTF8 = "utf-8"
    BASE64 = "base64"


class LinkMode(str, Enum):
    """How a deployment file is materialized from its blob.

    * ``hardlink`` — always hard-link; fail if the filesystem refuses.
    * ``copy`` — always copy the bytes.
    * ``auto`` — hard-link, falling back to a copy when linking is refused.
    """

    HARDLINK = "hardlink"
    COPY = "copy"
    AUTO = "auto"


class FileDescriptor(BaseModel):
    """One manifest entry of a deploy request.

    ``digest`` is also accepted as ``hash`` and ``content`` as ``data``.

    Examples
    --------
    >>> fd = FileDescriptor(filename="index.py", hash="ab" * 32)
    >>> fd.digest == "ab" * 32, fd.content is None
    (True, True)
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    digest: str = Field(validation_alias=AliasChoices("digest", "hash"))
    content: str | None = Field(
        default=None, validation_alias=AliasChoices("content", "data")
    )
    encoding: ContentEncoding = ContentEncoding.UTF8

    @property
    def has_content(self) -> bool:
        return self.content is not None

    def payload(self) -> bytes:
        """Decode the inline content into the bytes to store.

        Raises
        ------
        BadRequest
            If there is no content, or base64 content does not decode.
        """
        if self.content is None:
            raise BadRequest(f"No inline content for {self.filename!r}")
        if self.encoding is ContentEncoding.BASE64:
            try:
                return base64.b64decode(self.content, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise BadRequest(
                    f"Content of {self.filename!r} is not valid base64"
                ) from exc
        return self.content.encode("utf-8")

    def without_content(self) -> "FileDescriptor":
        """Copy of this entry that references its blob by digest only."""
        return FileDescriptor(
            filename=self.filename, digest=self.digest, encoding=self.encoding
        )


class DeployRequest(BaseModel):
    """Body of ``POST /deploy``."""

    model_config = ConfigDict(frozen=True)

    token: str = ""
    files: list[FileDescriptor] = Field(default_factory=list)


class DeployResponse(BaseModel):
    """Acknowledgement returned by a successful deploy."""

    model_config = ConfigDict(frozen=True)

    status: str = "deployed"
    deployment: str
    files: int
