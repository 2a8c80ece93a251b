import asyncio
from types import SimpleNamespace
from typing import Any

import httpx
import openai
import pytest

from mortgage_assistant.config import Settings
from mortgage_assistant.conversation.models import ConversationTurn
from mortgage_assistant.errors import ProviderUnavailable, RateLimitException
from mortgage_assistant.llm.client import LLMClient
from mortgage_assistant.llm.retry import RetryHandler, retry_after

REQUEST = httpx.Request("POST", "https://api.mistral.ai/v1/chat/completions")
TOOLS = [{"type": "function", "function": {"name": "calculate_mortgage", "parameters": {}}}]
TURNS = [ConversationTurn.system("system prompt"), ConversationTurn.user("hi")]


class FakeStream:
    def __init__(self, chunks: list[Any], error: Exception | None = None) -> None:
        self.chunks = chunks
        self.error = error
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def close(self) -> None:
        self.closed = True


class FakeCompletions:
    def __init__(self, results: list[Any]) -> None:
        self.results = list(results)
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _client(*results: Any, max_retries: int = 0) -> tuple[LLMClient, FakeCompletions]:
    completions = FakeCompletions(list(results))
    fake = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    settings = Settings(llm_api_key="test-key", llm_max_retries=max_retries)
    client = LLMClient(settings, client=fake)
    client.retry_handler.base_delay = 0
    return client, completions


def _completion(content: str | None = None, tool_calls: list[Any] | None = None) -> Any:
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason="stop")])


def _chunk(content: str | None) -> Any:
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


def test_complete_returns_content() -> None:
    client, completions = _client(_completion("Hello"))

    response = asyncio.run(client.complete(TURNS, TOOLS))

    assert response.content == "Hello"
    assert response.tool_calls == []
    call = completions.calls[0]
    assert call["tool_choice"] == "auto"
    assert call["stream"] is False
    assert call["tools"] == TOOLS
    assert call["messages"] == [
        {"role": "system", "content": "system prompt"},
        {"role": "user", "content": "hi"},
    ]


def test_complete_parses_tool_calls() -> None:
    raw_call = SimpleNamespace(
        id="call_1",
        function=SimpleNamespace(name="calculate_mortgage", arguments='{"propertyPrice": 1}'),
    )
    client, _ = _client(_completion(None, [raw_call]))

    response = asyncio.run(client.complete(TURNS, TOOLS))

    assert len(response.tool_calls) == 1
    invocation = response.tool_calls[0]
    assert (invocation.id, invocation.name) == ("call_1", "calculate_mortgage")
    assert invocation.parse_arguments() == {"propertyPrice": 1}


def test_complete_without_tools_omits_tool_choice() -> None:
    client, completions = _client(_completion("Hello"))

    asyncio.run(client.complete(TURNS, []))

    assert completions.calls[0]["tools"] is None
    assert completions.calls[0]["tool_choice"] is None


def test_empty_choices_is_provider_failure() -> None:
    client, _ = _client(SimpleNamespace(choices=[]))

    with pytest.raises(ProviderUnavailable):
        asyncio.run(client.complete(TURNS, TOOLS))


def test_stream_yields_text_and_closes() -> None:
    stream = FakeStream([_chunk("Your "), _chunk(None), SimpleNamespace(choices=[]), _chunk("EMI")])
    client, completions = _client(stream)

    async def consume() -> list[str]:
        return [fragment async for fragment in client.stream(TURNS, TOOLS)]

    assert asyncio.run(consume()) == ["Your ", "EMI"]
    assert stream.closed
    assert completions.calls[0]["stream"] is True
    assert completions.calls[0]["tool_choice"] == "none"


def test_stream_interruption_is_provider_failure() -> None:
    stream = FakeStream([_chunk("Your ")], error=openai.APIError("boom", REQUEST, body=None))
    client, _ = _client(stream)

    async def consume() -> list[str]:
        return [fragment async for fragment in client.stream(TURNS, TOOLS)]

    with pytest.raises(ProviderUnavailable):
        asyncio.run(consume())
    assert stream.closed


def test_connection_errors_are_retried() -> None:
    client, completions = _client(
        openai.APIConnectionError(request=REQUEST),
        _completion("recovered"),
        max_retries=2,
    )

    response = asyncio.run(client.complete(TURNS, TOOLS))

    assert response.content == "recovered"
    assert len(completions.calls) == 2


def test_exhausted_retries_are_provider_failure() -> None:
    client, completions = _client(
        openai.APIConnectionError(request=REQUEST),
        openai.APIConnectionError(request=REQUEST),
        max_retries=1,
    )

    with pytest.raises(ProviderUnavailable):
        asyncio.run(client.complete(TURNS, TOOLS))
    assert len(completions.calls) == 2


def test_rate_limit_is_not_retried() -> None:
    response = httpx.Response(429, headers={"retry-after": "12"}, request=REQUEST)
    client, completions = _client(
        openai.RateLimitError("slow down", response=response, body=None),
        max_retries=3,
    )

    with pytest.raises(RateLimitException) as excinfo:
        asyncio.run(client.complete(TURNS, TOOLS))

    assert excinfo.value.retry_after == 12
    assert len(completions.calls) == 1


def test_retry_backoff_is_capped() -> None:
    handler = RetryHandler(base_delay=1.0, max_delay=5.0)

    assert [handler.backoff(attempt) for attempt in range(1, 6)] == [1, 2, 4, 5, 5]


@pytest.mark.parametrize("header, expected", [("12", 12), ("600", 60), ("soon", 30), (None, 30)])
def test_retry_after_header(header: str | None, expected: float) -> None:
    headers = {"retry-after": header} if header is not None else {}
    response = httpx.Response(429, headers=headers, request=REQUEST)
    error = openai.RateLimitError("slow down", response=response, body=None)

    assert retry_after(error, default=30, cap=60) == expected
