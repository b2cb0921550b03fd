"""Tool-facing description generators for actions and composite tools.

Two generators share one interface: a deterministic template generator and an
LLM-backed generator that calls an OpenAI-compatible chat completions API.
``regenerate_action_descriptions`` writes the result onto the Action row (the
same path used when tools are first created); callers that only want to preview
a description must restore the previous values themselves.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib import error as urllib_error
from urllib import request as urllib_request

from pydantic import BaseModel, Field, ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from toolwright.config import get_settings
from toolwright.models.action import Action
from toolwright.models.composite_tool import CompositeToolOperation
from toolwright.models.integration import Integration

_MAX_DESCRIPTION_CHARS = 2500


class ToolDescriptionError(RuntimeError):
    """Raised when a description provider is misconfigured or returns invalid output."""


@dataclass(slots=True)
class GeneratedToolDescriptions:
    """Description plus response templates for one tool."""

    tool_description: str
    tool_success_template: str
    tool_error_template: str


@dataclass(slots=True)
class OperationActionData:
    """Action details for one composite-tool operation."""

    operation_slug: str
    display_name: str
    action_id: str
    action_name: str
    action_description: str | None
    tool_description: str | None
    integration_name: str
    input_schema: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class CompositeToolDescriptionInput:
    """Inputs the live system uses to describe a composite tool."""

    name: str
    slug: str
    description: str | None
    routing_mode: str
    unified_input_schema: dict[str, Any]
    operations: list[OperationActionData]
    has_default_operation: bool


class ToolDescriptionGenerator(ABC):
    """Abstract generator for tool-facing descriptions."""

    def regenerate_action_descriptions(self, db: Session, action_id: str) -> GeneratedToolDescriptions | None:
        """Generate and persist fresh descriptions for one action."""

        action = db.scalar(select(Action).where(Action.id == action_id))
        if action is None:
            return None
        integration_name = db.scalar(select(Integration.name).where(Integration.id == action.integration_id)) or ""
        generated = self.describe_action(action, integration_name=integration_name)
        action.tool_description = generated.tool_description
        action.tool_success_template = generated.tool_success_template
        action.tool_error_template = generated.tool_error_template
        db.flush()
        return generated

    @abstractmethod
    def describe_action(self, action: Action, *, integration_name: str) -> GeneratedToolDescriptions:
        """Compute descriptions for an action from its current schemas."""

    @abstractmethod
    def generate_composite_descriptions(self, payload: CompositeToolDescriptionInput) -> GeneratedToolDescriptions:
        """Compute descriptions for a composite tool from its operations."""


def load_operation_action_data(
    db: Session,
    operations: list[CompositeToolOperation],
) -> list[OperationActionData]:
    """Join composite operations with their actions and integration names."""

    action_ids = [operation.action_id for operation in operations]
    if not action_ids:
        return []
    rows = db.execute(
        select(Action, Integration.name)
        .join(Integration, Integration.id == Action.integration_id)
        .where(Action.id.in_(action_ids))
    ).all()
    by_id = {action.id: (action, integration_name) for action, integration_name in rows}

    data: list[OperationActionData] = []
    for operation in operations:
        found = by_id.get(operation.action_id)
        if found is None:
            continue
        action, integration_name = found
        data.append(
            OperationActionData(
                operation_slug=operation.operation_slug,
                display_name=operation.display_name,
                action_id=action.id,
                action_name=action.name,
                action_description=action.description,
                tool_description=action.tool_description,
                integration_name=integration_name,
                input_schema=dict(action.input_schema_json or {}),
            )
        )
    return data


class TemplateToolDescriptionGenerator(ToolDescriptionGenerator):
    """Deterministic mini-prompt descriptions built from schemas."""

    def describe_action(self, action: Action, *, integration_name: str) -> GeneratedToolDescriptions:
        purpose = _purpose_phrase(action.description, action.name)
        input_schema = action.input_schema_json or {}
        lines = [f"Use this tool to {purpose}."]
        if integration_name:
            lines.append(f"Calls the {integration_name} API ({action.http_method or 'GET'} {action.endpoint_template or '/'}).")
        lines.extend(_input_sections(input_schema))
        lines.append("")
        lines.append("# What the tool outputs:")
        lines.append(_output_summary(action.output_schema_json or {}))
        return GeneratedToolDescriptions(
            tool_description=_clip("\n".join(lines)),
            tool_success_template=f"## {action.name} Result\n\n{{{{summary}}}}\n\n{{{{key_result}}}}",
            tool_error_template=f"## {action.name} Error\n\n{{{{error_type}}}}: {{{{error_message}}}}\n\n{{{{remediation}}}}",
        )

    def generate_composite_descriptions(self, payload: CompositeToolDescriptionInput) -> GeneratedToolDescriptions:
        purpose = _purpose_phrase(payload.description, payload.name)
        count = len(payload.operations)
        lines = [f"Use this tool to {purpose}. It routes each request to one of {count} operation(s)."]
        lines.extend(_input_sections(payload.unified_input_schema))
        if payload.routing_mode == "agent_driven":
            slugs = ", ".join(operation.operation_slug for operation in payload.operations)
            lines.append(f"- operation: Must be one of: {slugs}.")
            lines.append("")
            lines.append("# Operation selection guidance:")
        else:
            lines.append("")
            lines.append("# How the tool selects operations:")
            if payload.has_default_operation:
                lines.append("Falls back to the default operation when no routing rule matches.")
        for operation in payload.operations:
            summary = _first_line(operation.tool_description) or _first_line(operation.action_description)
            inputs = ", ".join(sorted((operation.input_schema.get("properties") or {}).keys()))
            line = f"- {operation.operation_slug} ({operation.display_name}, {operation.integration_name})"
            if summary:
                line += f": {summary}"
            if inputs:
                line += f" Inputs: {inputs}."
            lines.append(line)
        lines.append("")
        lines.append("# What the tool outputs:")
        lines.append("The selected operation's response, with the operation name attached.")
        return GeneratedToolDescriptions(
            tool_description=_clip("\n".join(lines)),
            tool_success_template="## {{operation_used}} Result\n\n{{summary}}\n\n{{key_result}}",
            tool_error_template="## {{operation_used}} Error\n\n{{error_type}}: {{error_message}}\n\n{{remediation}}",
        )


class DescriptionLLMClient(Protocol):
    """Protocol for LLM clients that return structured description payloads."""

    def generate_structured(self, system_prompt: str, user_prompt: str) -> dict[str, Any]:
        """Return a JSON object matching the description response schema."""


_DESCRIPTION_JSON_SCHEMA: dict[str, Any] = {
    "name": "toolwright_tool_description",
    "strict": True,
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "tool_description": {"type": "string"},
            "tool_success_template": {"type": "string"},
            "tool_error_template": {"type": "string"},
        },
        "required": ["tool_description", "tool_success_template", "tool_error_template"],
    },
}

_SYSTEM_PROMPT = (
    "You write tool descriptions for AI agents in mini-prompt format. Start with 'Use this tool to', "
    "then list required inputs, optional inputs, and what the tool outputs. Be direct and technical. "
    "Also return a success template and an error template using {{placeholder}} variables."
)


@dataclass(slots=True)
class OpenAIDescriptionClient:
    """Minimal OpenAI Chat Completions client using stdlib HTTP."""

    api_key: str
    model: str
    base_url: str = "https://api.openai.com/v1"
    timeout_seconds: int = 60

    def generate_structured(self, system_prompt: str, user_prompt: str) -> dict[str, Any]:
        """Call OpenAI and return the parsed JSON object."""

        payload = {
            "model": self.model,
            "temperature": 0,
            "response_format": {"type": "json_schema", "json_schema": _DESCRIPTION_JSON_SCHEMA},
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        req = urllib_request.Request(
            url=f"{self.base_url.rstrip('/')}/chat/completions",
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        try:
            with urllib_request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urllib_error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise ToolDescriptionError(f"OpenAI HTTP {exc.code}: {detail}") from exc
        except urllib_error.URLError as exc:
            raise ToolDescriptionError(f"OpenAI request failed: {exc.reason}") from exc

        try:
            content = json.loads(raw)["choices"][0]["message"]["content"]
            if not isinstance(content, str):
                raise TypeError("OpenAI response content is not a string")
            return json.loads(content)
        except (KeyError, IndexError, TypeError, json.JSONDecodeError) as exc:
            raise ToolDescriptionError("OpenAI returned an unexpected or non-JSON response") from exc


class _RawDescriptions(BaseModel):
    tool_description: str = Field(min_length=1)
    tool_success_template: str = ""
    tool_error_template: str = ""


class LLMToolDescriptionGenerator(ToolDescriptionGenerator):
    """Descriptions written by an LLM from the same inputs the template uses."""

    def __init__(self, client: DescriptionLLMClient) -> None:
        self._client = client

    def describe_action(self, action: Action, *, integration_name: str) -> GeneratedToolDescriptions:
        prompt = json.dumps(
            {
                "task": "Write the tool description for this API action.",
                "integration": integration_name,
                "name": action.name,
                "description": action.description,
                "http_method": action.http_method,
                "endpoint": action.endpoint_template,
                "input_schema": action.input_schema_json or {},
                "output_schema": action.output_schema_json or {},
            },
            ensure_ascii=True,
        )
        return self._generate(prompt)

    def generate_composite_descriptions(self, payload: CompositeToolDescriptionInput) -> GeneratedToolDescriptions:
        prompt = json.dumps(
            {
                "task": "Write the tool description for this composite tool that routes to several operations.",
                "name": payload.name,
                "slug": payload.slug,
                "description": payload.description,
                "routing_mode": payload.routing_mode,
                "has_default_operation": payload.has_default_operation,
                "unified_input_schema": payload.unified_input_schema,
                "operations": [
                    {
                        "operation_slug": operation.operation_slug,
                        "display_name": operation.display_name,
                        "integration": operation.integration_name,
                        "action": operation.action_name,
                        "description": operation.action_description,
                        "tool_description": operation.tool_description,
                    }
                    for operation in payload.operations
                ],
            },
            ensure_ascii=True,
        )
        return self._generate(prompt)

    def _generate(self, user_prompt: str) -> GeneratedToolDescriptions:
        raw = self._client.generate_structured(_SYSTEM_PROMPT, user_prompt)
        try:
            validated = _RawDescriptions.model_validate(raw)
        except ValidationError as exc:
            raise ToolDescriptionError(f"Description payload failed validation: {exc}") from exc
        return GeneratedToolDescriptions(
            tool_description=_clip(validated.tool_description.strip()),
            tool_success_template=validated.tool_success_template.strip(),
            tool_error_template=validated.tool_error_template.strip(),
        )


def get_tool_description_generator() -> ToolDescriptionGenerator:
    """Build the generator selected by settings."""

    settings = get_settings()
    if settings.tool_description_generator == "openai":
        if not settings.openai_api_key:
            raise ToolDescriptionError("OPENAI_API_KEY is required for the openai description generator")
        return LLMToolDescriptionGenerator(
            OpenAIDescriptionClient(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                base_url=settings.openai_base_url,
                timeout_seconds=settings.openai_timeout_seconds,
            )
        )
    return TemplateToolDescriptionGenerator()


def _input_sections(schema: dict[str, Any]) -> list[str]:
    properties = schema.get("properties") if isinstance(schema, dict) else None
    if not isinstance(properties, dict) or not properties:
        return ["", "# Inputs:", "- none"]
    required = set(schema.get("required") or [])
    required_lines = [_field_line(name, spec) for name, spec in properties.items() if name in required]
    optional_lines = [_field_line(name, spec) for name, spec in properties.items() if name not in required]
    lines: list[str] = []
    if required_lines:
        lines.extend(["", "# Required inputs (always include these):", *required_lines])
    if optional_lines:
        lines.extend(["", "# Optional inputs (include when relevant):", *optional_lines])
    return lines


def _output_summary(schema: dict[str, Any]) -> str:
    properties = schema.get("properties") if isinstance(schema, dict) else None
    if not isinstance(properties, dict) or not properties:
        return f"Returns a {_type_label(schema)} response."
    fields = ", ".join(f"{name} ({_type_label(spec)})" for name, spec in properties.items())
    return f"Returns an object with: {fields}."


def _field_line(name: str, spec: Any) -> str:
    line = f"- {name} ({_type_label(spec)})"
    if isinstance(spec, dict):
        description = spec.get("description")
        if isinstance(description, str) and description.strip():
            line += f": {description.strip()}"
        enum = spec.get("enum")
        if isinstance(enum, list) and enum:
            line += f" One of: {', '.join(str(value) for value in enum)}."
    return line


def _type_label(spec: Any) -> str:
    if not isinstance(spec, dict):
        return "any"
    value = spec.get("type")
    if isinstance(value, list):
        return " | ".join(str(item) for item in value)
    if isinstance(value, str):
        return value
    return "any"


def _purpose_phrase(description: str | None, name: str) -> str:
    text = _first_line(description)
    if not text:
        return name.strip().lower() or "call this API"
    text = text.rstrip(".")
    return text[0].lower() + text[1:]


def _first_line(text: str | None) -> str:
    if not text:
        return ""
    return text.strip().splitlines()[0].strip() if text.strip() else ""


def _clip(text: str) -> str:
    return text if len(text) <= _MAX_DESCRIPTION_CHARS else text[: _MAX_DESCRIPTION_CHARS - 3] + "..."
