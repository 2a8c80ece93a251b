"""DTOs for tool dispatch."""

import json
from dataclasses import dataclass, field
from typing import Any

# Error codes reported back to the LLM
VALIDATION_ERROR = "validation_error"
MALFORMED_ARGUMENTS = "malformed_arguments"
UNKNOWN_TOOL = "unknown_tool"
TOOL_FAILED = "tool_failed"


@dataclass(frozen=True)
class ToolResult:
    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    message: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: dict[str, Any]) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, message: str, **details: Any) -> "ToolResult":
        return cls(success=False, error=error, message=message, details=details)

    def to_payload(self) -> dict[str, Any]:
        if self.success:
            return dict(self.data)
        return {
            "success": False,
            "error": self.error,
            "message": self.message,
            **self.details,
        }

    def to_content(self) -> str:
        """Serialize for a tool turn. Identical results give identical text."""
        return json.dumps(self.to_payload(), ensure_ascii=False, allow_nan=False)
