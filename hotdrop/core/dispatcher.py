"""Event dispatcher — routes inbound events to the active deployment.

Three kinds of inbound event reach the deployed logic: chat interactions,
chat messages and HTTP requests.  Each one independently loads the active
deployment (in a worker thread, since executing the entry module is
blocking I/O) and then calls the matching entry point with the shared
``DeploymentContext``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from hotdrop.core.loader import ActiveDeploymentLoader, LoadedDeployment
from hotdrop.models.context import DeploymentContext

logger = logging.getLogger(__name__)

ChatListener = Callable[[Any], Awaitable[Any]]


class EventDispatcher:
    """Invokes deployed-logic entry points with the shared context.

    Parameters
    ----------
    loader:
        Produces a fresh ``LoadedDeployment`` per event.
    context:
        Handed to every entry point of every deployment.
    """

    def __init__(self, loader: ActiveDeploymentLoader, context: DeploymentContext) -> None:
        self._loader = loader
        self._context = context

    @property
    def context(self) -> DeploymentContext:
        return self._context

    async def handle_interaction(self, interaction: Any) -> Any:
        return await self._invoke("handle_interaction", interaction)

    async def handle_message(self, message: Any) -> Any:
        return await self._invoke("handle_message", message)

    async def handle_http_request(self, request: Any, response: Any) -> Any:
        return await self._invoke("handle_http_request", request, response)

    def chat_listener(self, kind: str) -> ChatListener:
        """Build a callback for a chat client's event registration.

        *kind* is ``"interaction"`` or ``"message"``.  A failing event is
        logged with its traceback and dropped; the chat connection and the
        process keep running.

        Examples
        --------
        >>> # client.on("messageCreate", dispatcher.chat_listener("message"))
        """
        handlers = {
            "interaction": self.handle_interaction,
            "message": self.handle_message,
        }
        if kind not in handlers:
            raise ValueError(f"Unknown chat event kind: {kind!r}")
        handler = handlers[kind]

        async def _listener(payload: Any) -> Any:
            try:
                return await handler(payload)
            except Exception:
                logger.exception(
                    "Chat %s event failed.", kind, extra={"event": kind}
                )
                return None

        return _listener

    # -- Internal helpers ---------------------------------------------------

    async def _load(self) -> LoadedDeployment:
        return await asyncio.to_thread(self._loader.load_active)

    async def _invoke(self, entry_point: str, *payload: Any) -> Any:
        logic = await self._load()
        handler = logic.entry_point(entry_point)
        logger.debug(
            "Dispatching %s to deployment %s.",
            entry_point,
            logic.digest,
            extra={"deployment": logic.digest},
        )
        if inspect.iscoroutinefunction(handler):
            result = await handler(self._context, *payload)
        else:
            result = await asyncio.to_thread(handler, self._context, *payload)
        if inspect.isawaitable(result):
            result = await result
        return result
