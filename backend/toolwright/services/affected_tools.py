"""Discovery of tools that depend on an action."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from toolwright.maintenance.tool_allocation import json_contains_value
from toolwright.maintenance.types import AffectedTool
from toolwright.models.action import Action
from toolwright.models.agentic_tool import AgenticTool
from toolwright.models.composite_tool import CompositeTool, CompositeToolOperation


def find_affected_tools(db: Session, action_id: str, *, tenant_id: str | None = None) -> list[AffectedTool]:
    """Return the action plus every composite/agentic tool referencing it.

    Agentic allocations are matched by a recursive string search over the whole
    allocation JSON, so any string equal to the action id counts as a reference.
    """

    affected: list[AffectedTool] = []

    action = db.scalar(select(Action).where(Action.id == action_id))
    if action is not None:
        affected.append(AffectedTool(tool_type="action", tool_id=action.id, tool_name=action.name))

    composite_stmt = (
        select(CompositeTool.id, CompositeTool.name)
        .join(CompositeToolOperation, CompositeToolOperation.composite_tool_id == CompositeTool.id)
        .where(CompositeToolOperation.action_id == action_id)
        .order_by(CompositeTool.name.asc(), CompositeTool.id.asc())
    )
    if tenant_id is not None:
        composite_stmt = composite_stmt.where(CompositeTool.tenant_id == tenant_id)
    seen_composites: set[str] = set()
    for tool_id, tool_name in db.execute(composite_stmt).all():
        if tool_id in seen_composites:
            continue
        seen_composites.add(tool_id)
        affected.append(AffectedTool(tool_type="composite", tool_id=tool_id, tool_name=tool_name))

    agentic_stmt = select(AgenticTool).order_by(AgenticTool.name.asc(), AgenticTool.id.asc())
    if tenant_id is not None:
        agentic_stmt = agentic_stmt.where(AgenticTool.tenant_id == tenant_id)
    for tool in db.scalars(agentic_stmt):
        if tool.tool_allocation_json and json_contains_value(tool.tool_allocation_json, action_id):
            affected.append(AffectedTool(tool_type="agentic", tool_id=tool.id, tool_name=tool.name))

    return affected
