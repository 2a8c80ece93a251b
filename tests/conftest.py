import asyncio
import json
from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from mortgage_assistant.conversation.models import ConversationTurn, ToolInvocation
from mortgage_assistant.conversation.orchestrator import Orchestrator, TurnEvent
from mortgage_assistant.llm.dto import LLMResponse
from mortgage_assistant.storage.sessions import SessionStore
from mortgage_assistant.tools.registry import ToolRegistry


class FakeLLM:
    """
    Scripted stand-in for LLMClient.

    ``responses`` are returned by successive ``complete`` calls; ``stream``
    yields ``chunks`` and then raises ``stream_error`` if set.
    """

    def __init__(
        self,
        responses: list[LLMResponse] | None = None,
        chunks: list[str] | None = None,
        complete_error: Exception | None = None,
        stream_error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.responses = list(responses or [])
        self.chunks = list(chunks or [])
        self.complete_error = complete_error
        self.stream_error = stream_error
        self.delay = delay
        self.complete_calls: list[tuple[list[ConversationTurn], list[dict[str, Any]]]] = []
        self.stream_calls: list[tuple[list[ConversationTurn], list[dict[str, Any]]]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def complete(self, turns, tools) -> LLMResponse:
        self.complete_calls.append((list(turns), tools))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.complete_error is not None:
                raise self.complete_error
            if self.responses:
                return self.responses.pop(0)
            return LLMResponse(content="ok")
        finally:
            self.in_flight -= 1

    async def stream(self, turns, tools):
        self.stream_calls.append((list(turns), tools))
        for chunk in self.chunks:
            yield chunk
        if self.stream_error is not None:
            raise self.stream_error


def tool_call(call_id: str, name: str, arguments: dict[str, Any] | str) -> ToolInvocation:
    raw = arguments if isinstance(arguments, str) else json.dumps(arguments)
    return ToolInvocation(id=call_id, name=name, arguments=raw)


async def collect_async(events) -> list[TurnEvent]:
    return [event async for event in events]


def collect(events) -> list[TurnEvent]:
    return asyncio.run(collect_async(events))


def make_orchestrator(llm: FakeLLM, sessions: SessionStore | None = None, **kwargs) -> Orchestrator:
    kwargs.setdefault("chunk_delay", 0.0)
    return Orchestrator(
        sessions=sessions if sessions is not None else SessionStore(),
        llm=llm,  # type: ignore[arg-type]
        tools=ToolRegistry(),
        **kwargs,
    )


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture
def client() -> Iterator[TestClient]:
    from mortgage_assistant.main import app

    with TestClient(app) as test_client:
        yield test_client
