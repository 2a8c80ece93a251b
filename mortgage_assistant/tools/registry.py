"""Tool registry for loading and dispatching calculation tools."""

import logging
from typing import Any

from pydantic import ValidationError

from mortgage_assistant.conversation.models import Scenario
from mortgage_assistant.tools.arguments import parse_tool_arguments
from mortgage_assistant.tools.base import BaseTool
from mortgage_assistant.tools.dto import (
    TOOL_FAILED,
    UNKNOWN_TOOL,
    VALIDATION_ERROR,
    ToolResult,
)

logger = logging.getLogger(__name__)

SCENARIO_TOOLS: dict[Scenario, tuple[str, ...]] = {
    Scenario.BUY_VS_RENT: ("calculate_mortgage", "analyze_buy_vs_rent"),
    Scenario.REFINANCE_CHECK: ("calculate_refinance",),
}


class ToolRegistry:
    """Registry for calculation tools with lazy loading."""

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}
        self._loaded = False

    def _load_tools(self) -> None:
        """Load all available tools."""
        if self._loaded:
            return

        from mortgage_assistant.tools.analyze_buy_vs_rent import AnalyzeBuyVsRentTool
        from mortgage_assistant.tools.calculate_mortgage import CalculateMortgageTool
        from mortgage_assistant.tools.calculate_refinance import CalculateRefinanceTool

        tools = [
            CalculateMortgageTool(),
            AnalyzeBuyVsRentTool(),
            CalculateRefinanceTool(),
        ]

        for tool in tools:
            self._tools[tool.name] = tool
            logger.debug(f"Registered tool: {tool.name}")

        self._loaded = True
        logger.info(f"Loaded {len(self._tools)} tools")

    def get_tools(self, scenario: Scenario) -> list[dict[str, Any]]:
        """
        Get the scenario's tools in OpenAI-compatible format.

        Args:
            scenario: Conversation scenario

        Returns:
            List of tool definitions for the provider
        """
        self._load_tools()
        return [self._tools[name].to_openai_tool() for name in SCENARIO_TOOLS[scenario]]

    def get_tool(self, name: str, scenario: Scenario | None = None) -> BaseTool | None:
        """
        Get a tool by name, optionally restricted to a scenario's tool set.

        Returns:
            Tool instance or None if not found
        """
        self._load_tools()
        if scenario is not None and name not in SCENARIO_TOOLS[scenario]:
            return None
        return self._tools.get(name)

    def dispatch(
        self,
        name: str,
        arguments: dict[str, Any],
        scenario: Scenario,
    ) -> ToolResult:
        """
        Validate arguments and run a tool. Never raises.

        Args:
            name: Tool name requested by the LLM
            arguments: Decoded argument payload
            scenario: Scenario of the session the call belongs to

        Returns:
            Calculation data, or a structured error the LLM can relay
        """
        if name not in SCENARIO_TOOLS[scenario]:
            logger.warning(f"Unknown tool {name} for scenario {scenario.value}")
            return ToolResult.failure(
                UNKNOWN_TOOL,
                f"Unknown tool: {name}",
                available=list(SCENARIO_TOOLS[scenario]),
            )
        return self.run(name, arguments)

    def run(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Validate arguments and run any registered tool. Never raises."""
        try:
            tool = self.get_tool(name)
            if tool is None:
                return ToolResult.failure(UNKNOWN_TOOL, f"Unknown tool: {name}")

            payload = {key: value for key, value in arguments.items() if value is not None}
            try:
                validated = parse_tool_arguments(name, payload)
            except ValidationError as e:
                return validation_failure(name, e)

            logger.info(f"Executing tool {name}")
            result = tool.execute(validated)
            return ToolResult.ok(result.to_payload())
        except Exception as e:
            logger.exception(f"Tool {name} failed: {e}")
            return ToolResult.failure(TOOL_FAILED, "Tool execution failed")

    @property
    def tool_names(self) -> list[str]:
        """Get list of all tool names."""
        self._load_tools()
        return list(self._tools.keys())


def validation_failure(name: str, error: ValidationError) -> ToolResult:
    """Describe a rejected payload, naming missing and invalid fields."""
    missing: list[str] = []
    invalid: list[str] = []
    for item in error.errors():
        fields = [part for part in item["loc"] if isinstance(part, str) and part != name]
        field_name = fields[-1] if fields else name
        if item["type"] == "missing":
            missing.append(field_name)
        else:
            invalid.append(field_name)

    parts = []
    if missing:
        parts.append(f"missing required field(s): {', '.join(missing)}")
    if invalid:
        parts.append(f"invalid value(s) for: {', '.join(invalid)}")
    message = f"{name}: " + "; ".join(parts)
    logger.info(f"Rejected arguments for {name}: {message}")

    details: dict[str, Any] = {}
    if missing:
        details["missing"] = missing
    if invalid:
        details["invalid"] = invalid
    return ToolResult.failure(VALIDATION_ERROR, message, **details)
