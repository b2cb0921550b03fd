"""Post-approval description suggestions for tools that depend on an action."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from toolwright.maintenance.tool_allocation import AutonomousAgentAllocation, parse_tool_allocation
from toolwright.maintenance.types import DescriptionSuggestion
from toolwright.models.action import Action
from toolwright.models.agentic_tool import AgenticTool
from toolwright.models.composite_tool import CompositeTool, CompositeToolOperation
from toolwright.services.tool_descriptions import (
    CompositeToolDescriptionInput,
    ToolDescriptionGenerator,
    get_tool_description_generator,
    load_operation_action_data,
)

logger = logging.getLogger(__name__)


def generate_description_suggestions(
    db: Session,
    action_id: str,
    *,
    tenant_id: str | None = None,
    generator: ToolDescriptionGenerator | None = None,
) -> list[DescriptionSuggestion]:
    """Suggest new descriptions for the action and every tool built on it.

    Runs three passes (action, composite tools, agentic tools). A failing pass is
    logged and skipped so the others still contribute suggestions. The action's
    stored descriptions are left exactly as they were.
    """

    action = db.scalar(select(Action).where(Action.id == action_id))
    if action is None:
        return []
    generator = generator or get_tool_description_generator()
    tenant_id = tenant_id or action.tenant_id

    suggestions: list[DescriptionSuggestion] = []
    regenerated_description: str | None = None

    try:
        suggestion, regenerated_description = _suggest_for_action(db, action, generator)
        if suggestion is not None:
            suggestions.append(suggestion)
    except Exception:
        db.rollback()
        logger.exception("maintenance.cascade_action_pass_failed action_id=%s", action_id)

    try:
        suggestions.extend(_suggest_for_composites(db, action_id, tenant_id, generator))
    except Exception:
        db.rollback()
        logger.exception("maintenance.cascade_composite_pass_failed action_id=%s", action_id)

    try:
        suggestions.extend(_suggest_for_agentic_tools(db, action_id, tenant_id, regenerated_description))
    except Exception:
        db.rollback()
        logger.exception("maintenance.cascade_agentic_pass_failed action_id=%s", action_id)

    return suggestions


def apply_suggestion(db: Session, suggestion: DescriptionSuggestion, *, action_id: str) -> None:
    """Write one accepted suggestion onto the tool record it targets."""

    if suggestion.tool_type == "action":
        action = db.get(Action, suggestion.tool_id)
        if action is None:
            raise LookupError(f"Action not found: {suggestion.tool_id}")
        action.tool_description = suggestion.suggested_description
        return

    if suggestion.tool_type == "composite":
        composite = db.get(CompositeTool, suggestion.tool_id)
        if composite is None:
            raise LookupError(f"Composite tool not found: {suggestion.tool_id}")
        composite.tool_description = suggestion.suggested_description
        return

    tool = db.get(AgenticTool, suggestion.tool_id)
    if tool is None:
        raise LookupError(f"Agentic tool not found: {suggestion.tool_id}")
    allocation = parse_tool_allocation(tool.tool_allocation_json)
    if not isinstance(allocation, AutonomousAgentAllocation):
        raise ValueError(f"Agentic tool {tool.id} has no autonomous agent allocation")
    replaced = allocation.replace_description(suggestion.current_description, suggestion.suggested_description)
    if replaced == 0:
        raise ValueError(f"No allocation entry on agentic tool {tool.id} matches the suggested description's source")
    # Reassign so the JSON column is marked dirty.
    tool.tool_allocation_json = allocation.model_dump(mode="json")
    logger.info(
        "maintenance.agentic_description_applied tool_id=%s action_id=%s replaced=%d",
        tool.id,
        action_id,
        replaced,
    )


def _suggest_for_action(
    db: Session,
    action: Action,
    generator: ToolDescriptionGenerator,
) -> tuple[DescriptionSuggestion | None, str | None]:
    original_description = action.tool_description
    original_success = action.tool_success_template
    original_error = action.tool_error_template

    try:
        generated = generator.regenerate_action_descriptions(db, action.id)
    finally:
        action.tool_description = original_description
        action.tool_success_template = original_success
        action.tool_error_template = original_error
        db.flush()

    if generated is None:
        return None, None
    new_description = generated.tool_description
    if not new_description or new_description == original_description:
        return None, new_description
    suggestion = DescriptionSuggestion(
        tool_type="action",
        tool_id=action.id,
        tool_name=action.name,
        current_description=original_description,
        suggested_description=new_description,
    )
    return suggestion, new_description


def _suggest_for_composites(
    db: Session,
    action_id: str,
    tenant_id: str,
    generator: ToolDescriptionGenerator,
) -> list[DescriptionSuggestion]:
    composite_ids = list(
        db.scalars(
            select(CompositeToolOperation.composite_tool_id)
            .where(CompositeToolOperation.action_id == action_id)
            .distinct()
        )
    )
    if not composite_ids:
        return []
    composites = list(
        db.scalars(
            select(CompositeTool)
            .where(CompositeTool.id.in_(composite_ids), CompositeTool.tenant_id == tenant_id)
            .order_by(CompositeTool.name.asc(), CompositeTool.id.asc())
        )
    )

    suggestions: list[DescriptionSuggestion] = []
    for composite in composites:
        payload = CompositeToolDescriptionInput(
            name=composite.name,
            slug=composite.slug,
            description=composite.description,
            routing_mode=composite.routing_mode,
            unified_input_schema=dict(composite.unified_input_schema_json or {}),
            operations=load_operation_action_data(db, list(composite.operations)),
            has_default_operation=composite.default_operation_id is not None,
        )
        try:
            generated = generator.generate_composite_descriptions(payload)
        except Exception:
            logger.exception(
                "maintenance.cascade_composite_failed action_id=%s composite_tool_id=%s",
                action_id,
                composite.id,
            )
            continue
        if generated.tool_description and generated.tool_description != composite.tool_description:
            suggestions.append(
                DescriptionSuggestion(
                    tool_type="composite",
                    tool_id=composite.id,
                    tool_name=composite.name,
                    current_description=composite.tool_description,
                    suggested_description=generated.tool_description,
                )
            )
    return suggestions


def _suggest_for_agentic_tools(
    db: Session,
    action_id: str,
    tenant_id: str,
    regenerated_description: str | None,
) -> list[DescriptionSuggestion]:
    suggested = regenerated_description
    if not suggested:
        suggested = db.scalar(select(Action.tool_description).where(Action.id == action_id))
    if not suggested:
        return []

    suggestions: list[DescriptionSuggestion] = []
    tools = db.scalars(
        select(AgenticTool)
        .where(AgenticTool.tenant_id == tenant_id)
        .order_by(AgenticTool.name.asc(), AgenticTool.id.asc())
    )
    for tool in tools:
        allocation = parse_tool_allocation(tool.tool_allocation_json)
        # Parameter interpreters only reference actions; there is no embedded text to update.
        if not isinstance(allocation, AutonomousAgentAllocation):
            continue
        entry = allocation.find_tool(action_id)
        if entry is None or entry.description == suggested:
            continue
        suggestions.append(
            DescriptionSuggestion(
                tool_type="agentic",
                tool_id=tool.id,
                tool_name=tool.name,
                current_description=entry.description,
                suggested_description=suggested,
            )
        )
    return suggestions
