"""Tagged union over the two agentic tool-allocation JSON shapes."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


class TargetAction(BaseModel):
    """Action a parameter interpreter fills arguments for."""

    model_config = ConfigDict(extra="allow")

    action_id: str
    action_slug: str = ""


class AvailableTool(BaseModel):
    """Action exposed to an autonomous agent, with its embedded description."""

    model_config = ConfigDict(extra="allow")

    action_id: str
    action_slug: str = ""
    description: str = ""


class ParameterInterpreterAllocation(BaseModel):
    """Allocation that maps a prompt onto a flat list of target actions."""

    model_config = ConfigDict(extra="allow")

    mode: Literal["parameter_interpreter"]
    target_actions: list[TargetAction] = Field(default_factory=list)


class AutonomousAgentAllocation(BaseModel):
    """Allocation that lets an agent choose among described tools."""

    model_config = ConfigDict(extra="allow")

    mode: Literal["autonomous_agent"]
    available_tools: list[AvailableTool] = Field(default_factory=list)

    def find_tool(self, action_id: str) -> AvailableTool | None:
        return next((tool for tool in self.available_tools if tool.action_id == action_id), None)

    def replace_description(self, current: str | None, suggested: str) -> int:
        """Swap every entry whose description equals ``current``; return the count."""

        replaced = 0
        for tool in self.available_tools:
            if tool.description == current:
                tool.description = suggested
                replaced += 1
        return replaced


ToolAllocation = Annotated[
    ParameterInterpreterAllocation | AutonomousAgentAllocation,
    Field(discriminator="mode"),
]

_ALLOCATION_ADAPTER: TypeAdapter[ParameterInterpreterAllocation | AutonomousAgentAllocation] = TypeAdapter(
    ToolAllocation
)


def parse_tool_allocation(raw: Any) -> ParameterInterpreterAllocation | AutonomousAgentAllocation | None:
    """Parse stored allocation JSON, returning None for unknown or malformed shapes."""

    if not isinstance(raw, dict) or not raw:
        return None
    try:
        return _ALLOCATION_ADAPTER.validate_python(raw)
    except ValidationError:
        return None


def json_contains_value(value: Any, target: str) -> bool:
    """Return True when any string anywhere in a JSON value equals ``target``."""

    if isinstance(value, str):
        return value == target
    if isinstance(value, list):
        return any(json_contains_value(item, target) for item in value)
    if isinstance(value, dict):
        return any(json_contains_value(item, target) for item in value.values())
    return False
