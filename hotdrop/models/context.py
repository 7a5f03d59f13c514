"""Shared context handed to every deployed-logic entry point."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DeploymentContext(BaseModel):
    """Handles the deployed logic works with.

    One instance lives for the whole process and is passed to every entry
    point of every deployment, so ``process_state`` is the place for data
    that must survive a hot swap.  The chat client, database and credential
    values are opaque to hotdrop.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    process_state: dict[str, Any] = Field(default_factory=dict)
    chat_client: Any = None
    db: Any = None
    app: Any = None
    credentials: dict[str, Any] = Field(default_factory=dict)
    logger: logging.Logger = Field(
        default_factory=lambda: logging.getLogger("hotdrop.deployed")
    )
    settings: Any = None
