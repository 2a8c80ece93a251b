"""Turn orchestrator: dialogue state, tool dispatch and narrative streaming."""

import asyncio
import logging
import math
from collections.abc import AsyncIterator
from contextlib import aclosing
from dataclasses import dataclass

from mortgage_assistant.constants import (
    PROVIDER_FAILED_AFTER_TOOLS_MESSAGE,
    PROVIDER_UNAVAILABLE_MESSAGE,
    RATE_LIMITED_MESSAGE,
)
from mortgage_assistant.conversation.context import DEFAULT_WINDOW_SIZE, build_context_window
from mortgage_assistant.conversation.extractors import extract_parameters
from mortgage_assistant.conversation.models import (
    ConversationSession,
    ConversationTurn,
    Scenario,
)
from mortgage_assistant.errors import (
    InvalidRequest,
    MalformedToolArguments,
    ProviderUnavailable,
    RateLimitException,
)
from mortgage_assistant.llm.client import LLMClient
from mortgage_assistant.llm.dto import LLMResponse
from mortgage_assistant.storage.sessions import SessionStore
from mortgage_assistant.tools.dto import MALFORMED_ARGUMENTS, ToolResult
from mortgage_assistant.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TurnEvent:
    """One narrative fragment, or the end-of-turn marker when ``done`` is set."""

    content: str = ""
    tool_used: str | None = None
    done: bool = False


END_OF_TURN = TurnEvent(done=True)


def parse_scenario(value: str | Scenario) -> Scenario:
    """
    Raises:
        InvalidRequest: If the value is not a known scenario
    """
    try:
        return Scenario(value)
    except ValueError:
        known = ", ".join(s.value for s in Scenario)
        raise InvalidRequest(f"Unknown scenario: {value!r} (expected one of: {known})") from None


def fallback_message(error: ProviderUnavailable, default: str) -> str:
    """User-facing text for a failed provider round, naming the wait when rate limited."""
    if isinstance(error, RateLimitException):
        return RATE_LIMITED_MESSAGE.format(seconds=max(math.ceil(error.retry_after), 1))
    return default


class Orchestrator:
    """
    Drive one user turn end to end.

    ingest -> extract -> build context -> query provider -> dispatch tools if
    requested -> stream final narrative -> record the turn.
    """

    def __init__(
        self,
        sessions: SessionStore,
        llm: LLMClient,
        tools: ToolRegistry,
        context_window: int = DEFAULT_WINDOW_SIZE,
        chunk_size: int = 10,
        chunk_delay: float = 0.01,
    ):
        """
        Initialize the orchestrator.

        Args:
            sessions: Session store owning all conversation state
            llm: Provider client
            tools: Tool registry used for schemas and dispatch
            context_window: Turns sent after the system turn
            chunk_size: Fragment size when replaying a one-piece reply
            chunk_delay: Pause between replayed fragments in seconds
        """
        self.sessions = sessions
        self.llm = llm
        self.tools = tools
        self.context_window = context_window
        self.chunk_size = max(chunk_size, 1)
        self.chunk_delay = chunk_delay

    def start_turn(
        self,
        session_key: str,
        scenario: str | Scenario,
        user_text: str,
    ) -> AsyncIterator[TurnEvent]:
        """
        Validate a turn request and return its event stream.

        Validation happens immediately; everything else runs lazily while the
        returned iterator is consumed. The stream always ends with END_OF_TURN
        unless the consumer stops early.

        Raises:
            InvalidRequest: If the key, scenario or text is missing or invalid
        """
        if not session_key or not session_key.strip():
            raise InvalidRequest("Missing sessionId")
        if not user_text or not user_text.strip():
            raise InvalidRequest("Missing message")
        resolved = parse_scenario(scenario)
        return self._run_turn(session_key, resolved, user_text)

    async def _run_turn(
        self,
        session_key: str,
        scenario: Scenario,
        user_text: str,
    ) -> AsyncIterator[TurnEvent]:
        async with aclosing(self._locked_turn(session_key, scenario, user_text)) as events:
            async for event in events:
                yield event
        yield END_OF_TURN

    async def _locked_turn(
        self,
        session_key: str,
        scenario: Scenario,
        user_text: str,
    ) -> AsyncIterator[TurnEvent]:
        if self.sessions.busy(session_key):
            logger.info(f"Session {session_key} busy, queueing turn")

        async with self.sessions.hold(session_key):
            session = self.sessions.get_or_create(session_key, scenario)
            session.append(ConversationTurn.user(user_text))
            session.merge_parameters(extract_parameters(user_text).as_dict())

            tool_schemas = self.tools.get_tools(session.scenario)
            logger.info(f"Turn started for session {session_key} ({len(session)} turns)")

            try:
                response = await self.llm.complete(self._window(session), tool_schemas)
            except ProviderUnavailable as e:
                logger.warning(f"Provider unavailable for session {session_key}: {e}")
                message = fallback_message(e, PROVIDER_UNAVAILABLE_MESSAGE)
                self._finish(session, message)
                yield TurnEvent(content=message)
                return

            if response.tool_calls:
                tool_used = self._run_tools(session, response)
                narrative: list[str] = []
                try:
                    stream = self.llm.stream(self._window(session), tool_schemas)
                    async with aclosing(stream) as fragments:
                        async for fragment in fragments:
                            narrative.append(fragment)
                            yield TurnEvent(content=fragment, tool_used=tool_used)
                except ProviderUnavailable as e:
                    logger.warning(
                        f"Provider failed after tools for session {session_key}: {e}"
                    )
                    # The partial narrative is dropped, only the apology is recorded
                    message = fallback_message(e, PROVIDER_FAILED_AFTER_TOOLS_MESSAGE)
                    self._finish(session, message)
                    yield TurnEvent(content=message, tool_used=tool_used)
                    return
                full_text = "".join(narrative)
            else:
                full_text = response.content or ""
                for start in range(0, len(full_text), self.chunk_size):
                    yield TurnEvent(content=full_text[start:start + self.chunk_size])
                    await asyncio.sleep(self.chunk_delay)

            self._finish(session, full_text)

    def _run_tools(self, session: ConversationSession, response: LLMResponse) -> str | None:
        """
        Record the tool-call turn, then one tool turn per invocation.

        Runs without suspension points, so the assistant turn and all of its
        tool results land in the session together.

        Returns:
            Name of the last tool executed
        """
        session.append(ConversationTurn.assistant(response.content or "", response.tool_calls))

        tool_used = None
        for invocation in response.tool_calls:
            try:
                arguments = invocation.parse_arguments()
            except MalformedToolArguments as e:
                logger.warning(f"Malformed arguments for {invocation.name}: {e}")
                result = ToolResult.failure(MALFORMED_ARGUMENTS, str(e))
            else:
                result = self.tools.dispatch(invocation.name, arguments, session.scenario)
                session.merge_parameters(arguments)
                tool_used = invocation.name

            session.append(ConversationTurn.tool(invocation, result.to_content()))

        return tool_used

    def _window(self, session: ConversationSession) -> list[ConversationTurn]:
        return build_context_window(session.turns, self.context_window)

    def _finish(self, session: ConversationSession, text: str) -> None:
        session.append(ConversationTurn.assistant(text))
        self.sessions.touch(session)
        logger.info(f"Turn finished for session {session.key} ({len(session)} turns)")
