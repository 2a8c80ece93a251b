"""Conversation data model: turns, tool invocations and sessions."""

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from mortgage_assistant.errors import MalformedToolArguments


class Scenario(str, Enum):
    """Conversation scenarios offered to the user."""

    BUY_VS_RENT = "buy-vs-rent"
    REFINANCE_CHECK = "refinance-check"


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call requested by the provider, with its raw JSON arguments."""

    id: str
    name: str
    arguments: str

    def parse_arguments(self) -> dict[str, Any]:
        """
        Decode the raw argument payload.

        Raises:
            MalformedToolArguments: If the payload is not a JSON object
        """
        try:
            payload = json.loads(self.arguments or "{}")
        except (json.JSONDecodeError, TypeError) as e:
            raise MalformedToolArguments(f"Arguments for {self.name} are not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise MalformedToolArguments(f"Arguments for {self.name} must be a JSON object")
        return payload

    def to_openai(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass(frozen=True)
class ConversationTurn:
    """One role-tagged transcript entry. Immutable once appended."""

    role: Role
    content: str
    tool_calls: tuple[ToolInvocation, ...] = ()
    tool_call_id: str | None = None
    name: str | None = None

    @classmethod
    def system(cls, content: str) -> "ConversationTurn":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "ConversationTurn":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls, content: str, tool_calls: list[ToolInvocation] | None = None
    ) -> "ConversationTurn":
        return cls(role=Role.ASSISTANT, content=content, tool_calls=tuple(tool_calls or ()))

    @classmethod
    def tool(cls, invocation: ToolInvocation, content: str) -> "ConversationTurn":
        return cls(
            role=Role.TOOL,
            content=content,
            tool_call_id=invocation.id,
            name=invocation.name,
        )

    def to_message(self) -> dict[str, Any]:
        """Convert to an OpenAI-compatible chat message."""
        message: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [tc.to_openai() for tc in self.tool_calls]
        if self.role is Role.TOOL:
            message["tool_call_id"] = self.tool_call_id
            message["name"] = self.name
        return message


@dataclass
class ConversationSession:
    """
    Full conversation state for one session key.

    The turn list is append-only and its order is the literal transcript sent
    to the provider. The scenario is fixed at creation.
    """

    key: str
    scenario: Scenario
    _turns: list[ConversationTurn] = field(default_factory=list, repr=False)
    parameters: dict[str, float] = field(default_factory=dict)
    created_at: float = field(default_factory=time.monotonic)
    last_active: float = field(default_factory=time.monotonic)

    @property
    def turns(self) -> tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    def append(self, turn: ConversationTurn) -> None:
        self._turns.append(turn)

    def merge_parameters(self, values: dict[str, Any]) -> None:
        """Merge numeric values into the accumulated parameters (last write wins)."""
        for name, value in values.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            self.parameters[name] = value

    def __len__(self) -> int:
        return len(self._turns)
