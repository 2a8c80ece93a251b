"""DTOs for the LLM provider client."""

from dataclasses import dataclass, field

from mortgage_assistant.conversation.models import ToolInvocation


@dataclass
class LLMResponse:
    content: str | None
    tool_calls: list[ToolInvocation] = field(default_factory=list)
    finish_reason: str | None = None
