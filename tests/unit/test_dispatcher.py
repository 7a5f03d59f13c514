"""Tests for EventDispatcher — per-event loading and entry point invocation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from types import SimpleNamespace

import pytest

from hotdrop.core.builder import DeploymentBuilder
from hotdrop.core.dispatcher import EventDispatcher
from hotdrop.core.errors import NoDeploymentAvailable
from hotdrop.core.loader import ActiveDeploymentLoader
from hotdrop.models.context import DeploymentContext
from hotdrop.models.deployments import FileDescriptor


@pytest.fixture
def dispatcher(loader: ActiveDeploymentLoader) -> EventDispatcher:
    return EventDispatcher(loader, DeploymentContext())


class TestDispatch:
    def test_sync_interaction(self, dispatcher: EventDispatcher, deploy_logic):
        deploy_logic("v1")
        result = asyncio.run(dispatcher.handle_interaction({"id": 7}))
        assert result == {"version": "v1", "interaction": {"id": 7}}

    def test_async_message_uses_shared_state(
        self, dispatcher: EventDispatcher, deploy_logic
    ):
        deploy_logic("v1")
        asyncio.run(dispatcher.handle_message("hello"))
        result = asyncio.run(dispatcher.handle_message("again"))
        assert result == {"version": "v1", "count": 2}
        assert dispatcher.context.process_state["messages"] == ["hello", "again"]

    def test_process_state_survives_hot_swap(
        self, dispatcher: EventDispatcher, deploy_logic
    ):
        deploy_logic("v1")
        asyncio.run(dispatcher.handle_message("before"))
        deploy_logic("v2")
        result = asyncio.run(dispatcher.handle_message("after"))
        assert result == {"version": "v2", "count": 2}

    def test_http_request(self, dispatcher: EventDispatcher, deploy_logic):
        deploy_logic("v3")
        request = SimpleNamespace(method="POST")
        response = SimpleNamespace(headers={})
        result = asyncio.run(dispatcher.handle_http_request(request, response))
        assert result == {"version": "v3", "method": "POST"}
        assert response.headers["x-deployment-version"] == "v3"

    def test_handler_returning_awaitable(
        self,
        dispatcher: EventDispatcher,
        builder: DeploymentBuilder,
        make_file: Callable[..., FileDescriptor],
    ):
        source = (
            "import asyncio\n"
            "async def _later(value):\n    return value * 2\n"
            "def handle_interaction(context, interaction):\n    return _later(interaction)\n"
            "def handle_message(context, message):\n    return None\n"
            "def handle_http_request(context, request, response):\n    return None\n"
        )
        builder.build([make_file("index.py", source)])
        assert asyncio.run(dispatcher.handle_interaction(21)) == 42

    def test_no_deployment_propagates(self, dispatcher: EventDispatcher):
        with pytest.raises(NoDeploymentAvailable):
            asyncio.run(dispatcher.handle_interaction({}))


class TestChatListener:
    def test_listener_delivers(self, dispatcher: EventDispatcher, deploy_logic):
        deploy_logic("v1")
        listener = dispatcher.chat_listener("interaction")
        assert asyncio.run(listener("ping")) == {"version": "v1", "interaction": "ping"}

    def test_listener_logs_and_drops_failures(
        self, dispatcher: EventDispatcher, caplog: pytest.LogCaptureFixture
    ):
        listener = dispatcher.chat_listener("message")
        with caplog.at_level(logging.ERROR, logger="hotdrop.core.dispatcher"):
            assert asyncio.run(listener("hello")) is None
        assert "Chat message event failed" in caplog.text

    def test_listener_recovers_after_deploy(
        self, dispatcher: EventDispatcher, deploy_logic
    ):
        listener = dispatcher.chat_listener("interaction")
        assert asyncio.run(listener("early")) is None
        deploy_logic("v1")
        assert asyncio.run(listener("late")) == {"version": "v1", "interaction": "late"}

    def test_unknown_kind(self, dispatcher: EventDispatcher):
        with pytest.raises(ValueError):
            dispatcher.chat_listener("reaction")
