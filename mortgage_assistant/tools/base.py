"""Base class for LLM tools."""

from abc import ABC, abstractmethod
from typing import Any

from mortgage_assistant.calc.dto import CalculationResult
from mortgage_assistant.tools.arguments import ToolArguments


class BaseTool(ABC):
    """
    Abstract base class for LLM tools.

    Each tool is defined in its own file with:
    - name: Unique identifier, also the tag of its argument model
    - description: Description for LLM to understand when to use it
    - parameters: JSON Schema for tool parameters
    - execute: Run the calculation on validated arguments
    """

    name: str
    description: str
    parameters: dict[str, Any]

    @abstractmethod
    def execute(self, arguments: ToolArguments) -> CalculationResult:
        """
        Execute the tool with validated arguments.

        Args:
            arguments: The argument model tagged with this tool's name

        Returns:
            Calculation result (serialized to JSON for LLM)
        """

    def to_openai_tool(self) -> dict[str, Any]:
        """
        Convert tool to OpenAI-compatible tool definition.

        Returns:
            Dict in OpenAI tool format
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def __repr__(self) -> str:
        return f"<Tool: {self.name}>"
