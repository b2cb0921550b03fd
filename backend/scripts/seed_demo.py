"""Seed a demo integration with a drifting action and run a generation pass.

Usage (from repository root):
    python backend/scripts/seed_demo.py

Usage (from backend directory):
    python scripts/seed_demo.py
    # or
    python -m scripts.seed_demo
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from sqlalchemy import delete

# Make `toolwright` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from toolwright.db.session import SessionLocal
from toolwright.models.action import Action
from toolwright.models.agentic_tool import AgenticTool
from toolwright.models.composite_tool import CompositeTool, CompositeToolOperation
from toolwright.models.drift_report import DriftReport
from toolwright.models.integration import Integration
from toolwright.models.maintenance_proposal import MaintenanceProposal
from toolwright.models.validation_failure import ValidationFailure
from toolwright.services.maintenance import generate_proposals_for_integration


DEFAULT_TENANT_ID = "demo-tenant"


def reset_tenant(db, tenant_id: str) -> None:
    """Remove existing demo records for the tenant."""

    db.execute(delete(MaintenanceProposal).where(MaintenanceProposal.tenant_id == tenant_id))
    db.execute(delete(DriftReport).where(DriftReport.tenant_id == tenant_id))
    db.execute(delete(ValidationFailure).where(ValidationFailure.tenant_id == tenant_id))
    db.execute(delete(AgenticTool).where(AgenticTool.tenant_id == tenant_id))
    db.execute(delete(CompositeTool).where(CompositeTool.tenant_id == tenant_id))
    db.execute(delete(Action).where(Action.tenant_id == tenant_id))
    db.execute(delete(Integration).where(Integration.tenant_id == tenant_id))
    db.commit()


def seed_integration(db, tenant_id: str) -> tuple[Integration, Action]:
    """Create an integration whose list-issues action has drifted three ways."""

    integration = Integration(
        tenant_id=tenant_id,
        name="Issue Tracker",
        slug="issue-tracker",
        maintenance_config_json={"enabled": True, "auto_approve_info_level": False, "rescrape_on_breaking": True},
    )
    db.add(integration)
    db.flush()

    action = Action(
        integration_id=integration.id,
        tenant_id=tenant_id,
        name="List Issues",
        slug="list-issues",
        description="List issues in a project.",
        http_method="GET",
        endpoint_template="/projects/{project_id}/issues",
        input_schema_json={
            "type": "object",
            "properties": {"project_id": {"type": "string"}},
            "required": ["project_id"],
        },
        output_schema_json={
            "type": "object",
            "properties": {
                "status": {"type": "string", "enum": ["open", "closed"]},
                "assignee": {"type": "string"},
                "title": {"type": "string"},
            },
            "required": ["status", "title"],
        },
        metadata_json={"source_urls": ["https://docs.example.com/issues/list"]},
        tool_description="Use this tool to list issues in a project.",
    )
    db.add(action)
    db.flush()

    composite = CompositeTool(
        tenant_id=tenant_id,
        name="Issue Manager",
        slug="issue-manager",
        description="Manage issues across projects.",
        routing_mode="agent_driven",
        unified_input_schema_json={"type": "object", "properties": {"project_id": {"type": "string"}}},
    )
    composite.operations.append(
        CompositeToolOperation(action_id=action.id, operation_slug="list", display_name="List issues", priority=0)
    )
    db.add(composite)
    db.add(
        AgenticTool(
            tenant_id=tenant_id,
            name="Triage Agent",
            slug="triage-agent",
            execution_mode="autonomous_agent",
            tool_allocation_json={
                "mode": "autonomous_agent",
                "available_tools": [
                    {"action_id": action.id, "action_slug": action.slug, "description": action.tool_description}
                ],
            },
        )
    )

    signals = [
        ("invalid_enum_value", "status", "info", "string", "archived", 3),
        ("type_mismatch", "assignee", "warning", "string", "null", 7),
        ("unexpected_field", "labels", "info", None, "array", 2),
    ]
    for issue_code, field_path, severity, expected, received, count in signals:
        db.add(
            DriftReport(
                integration_id=integration.id,
                tenant_id=tenant_id,
                action_id=action.id,
                fingerprint=f"{issue_code}:{field_path}",
                issue_code=issue_code,
                severity=severity,
                field_path=field_path,
                expected_type=expected,
                current_type=received,
                failure_count=count,
            )
        )
        db.add(
            ValidationFailure(
                integration_id=integration.id,
                tenant_id=tenant_id,
                action_id=action.id,
                direction="output",
                issue_code=issue_code,
                field_path=field_path,
                expected_type=expected,
                received_type=received,
                failure_count=count,
            )
        )
    db.commit()
    return integration, action


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Seed a drifting demo integration and generate proposals.")
    parser.add_argument(
        "--tenant-id",
        default=DEFAULT_TENANT_ID,
        help=f"Tenant ID to seed (default: {DEFAULT_TENANT_ID})",
    )
    parser.add_argument(
        "--no-reset",
        action="store_true",
        help="Do not delete existing records for the tenant before seeding.",
    )
    return parser.parse_args()


def main() -> None:
    """Seed demo data and print a short summary."""

    args = parse_args()
    tenant_id: str = args.tenant_id

    with SessionLocal() as db:
        if not args.no_reset:
            reset_tenant(db, tenant_id)
        integration, action = seed_integration(db, tenant_id)
        integration_id = integration.id
        action_id = action.id
        result = generate_proposals_for_integration(db, integration_id, tenant_id)

    print("Seed complete")
    print(f"tenant_id={tenant_id}")
    print(f"integration_id={integration_id}")
    print(f"action_id={action_id}")
    print(f"proposals_created={result.proposals_created}")
    print(f"actions_affected={result.actions_affected}")
    print()
    print("Inspect (send X-Tenant-Id header):")
    print(f"  GET /integrations/{integration_id}/maintenance/proposals")
    print(f"  GET /integrations/{integration_id}/maintenance/summary")


if __name__ == "__main__":
    main()
