"""LLM client for Mistral/OpenAI-compatible APIs with tool calling."""

import logging
import os
from collections.abc import AsyncIterator, Sequence
from typing import Any

from openai import APIError

from mortgage_assistant.config import Settings
from mortgage_assistant.conversation.models import ConversationTurn, ToolInvocation
from mortgage_assistant.errors import ProviderUnavailable
from mortgage_assistant.llm.dto import LLMResponse
from mortgage_assistant.llm.retry import RetryHandler

# Use Langfuse-wrapped client only if properly configured
_langfuse_host = os.getenv("LANGFUSE_HOST", "")
if _langfuse_host:
    from langfuse.openai import AsyncOpenAI
else:
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class LLMClient:
    """Async client for the provider's chat completions endpoint."""

    def __init__(self, settings: Settings, client: Any | None = None):
        """
        Initialize LLM client.

        Args:
            settings: Application settings
            client: Preconfigured AsyncOpenAI-compatible client (built from settings if omitted)
        """
        self.settings = settings
        self.client = client if client is not None else AsyncOpenAI(
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
            timeout=settings.llm_timeout,
        )
        self.retry_handler = RetryHandler(
            max_retries=settings.llm_max_retries,
        )

    async def complete(
        self,
        turns: Sequence[ConversationTurn],
        tools: list[dict[str, Any]],
    ) -> LLMResponse:
        """
        Single-shot completion with tool choice enabled.

        Args:
            turns: Context window to send
            tools: Tool definitions in OpenAI format

        Returns:
            Assistant content and any requested tool invocations

        Raises:
            ProviderUnavailable: If the call fails after retries
        """
        response = await self._call_llm(turns, tools, stream=False, tool_choice="auto")

        if not response.choices:
            raise ProviderUnavailable("LLM API returned no choices")

        choice = response.choices[0]
        message = choice.message
        tool_calls = [
            ToolInvocation(
                id=tc.id,
                name=tc.function.name,
                arguments=tc.function.arguments or "",
            )
            for tc in (message.tool_calls or [])
        ]
        logger.debug(
            f"LLM response: finish_reason={choice.finish_reason}, tool_calls={len(tool_calls)}"
        )
        return LLMResponse(
            content=message.content,
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason,
        )

    async def stream(
        self,
        turns: Sequence[ConversationTurn],
        tools: list[dict[str, Any]],
    ) -> AsyncIterator[str]:
        """
        Stream the assistant's text, fragment by fragment.

        Tool definitions are sent so the transcript's tool calls stay
        resolvable, but the model is asked not to call them again.

        Raises:
            ProviderUnavailable: If the call fails before or during streaming
        """
        stream = await self._call_llm(turns, tools, stream=True, tool_choice="none")
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except APIError as e:
            logger.error(f"LLM stream interrupted: {e}")
            raise ProviderUnavailable(f"LLM stream interrupted: {e}") from e
        finally:
            await stream.close()

    async def _call_llm(
        self,
        turns: Sequence[ConversationTurn],
        tools: list[dict[str, Any]],
        stream: bool,
        tool_choice: str,
    ) -> Any:
        """Call LLM API with retry logic, translating SDK errors."""
        messages = [turn.to_message() for turn in turns]

        async def make_request():
            return await self.client.chat.completions.create(
                model=self.settings.llm_model,
                messages=messages,
                tools=tools if tools else None,
                tool_choice=tool_choice if tools else None,
                temperature=self.settings.llm_temperature,
                stream=stream,
            )

        try:
            return await self.retry_handler.execute(make_request)
        except ProviderUnavailable:
            raise
        except APIError as e:
            logger.error(f"LLM API call failed: {e}")
            raise ProviderUnavailable(f"LLM API error: {e}") from e
