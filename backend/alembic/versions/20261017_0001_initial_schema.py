"""initial schema

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261017_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "integrations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("maintenance_config_json", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_integrations_tenant_id", "integrations", ["tenant_id"], unique=False)

    op.create_table(
        "actions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("integration_id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("http_method", sa.String(length=16), nullable=True),
        sa.Column("endpoint_template", sa.String(length=1024), nullable=True),
        sa.Column("input_schema_json", sa.JSON(), nullable=False),
        sa.Column("output_schema_json", sa.JSON(), nullable=False),
        sa.Column("metadata_json", sa.JSON(), nullable=False),
        sa.Column("tool_description", sa.Text(), nullable=True),
        sa.Column("tool_success_template", sa.Text(), nullable=True),
        sa.Column("tool_error_template", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["integration_id"], ["integrations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_actions_integration_id", "actions", ["integration_id"], unique=False)
    op.create_index("ix_actions_tenant_id", "actions", ["tenant_id"], unique=False)

    op.create_table(
        "drift_reports",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("integration_id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("action_id", sa.String(length=36), nullable=False),
        sa.Column("fingerprint", sa.String(length=255), nullable=False),
        sa.Column("issue_code", sa.String(length=50), nullable=False),
        sa.Column("severity", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default=sa.text("'detected'")),
        sa.Column("field_path", sa.String(length=255), nullable=False),
        sa.Column("expected_type", sa.String(length=50), nullable=True),
        sa.Column("current_type", sa.String(length=50), nullable=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("failure_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["action_id"], ["actions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_drift_reports_integration_id", "drift_reports", ["integration_id"], unique=False)
    op.create_index("ix_drift_reports_tenant_id", "drift_reports", ["tenant_id"], unique=False)
    op.create_index("ix_drift_reports_action_id", "drift_reports", ["action_id"], unique=False)
    op.create_index("ix_drift_reports_status", "drift_reports", ["status"], unique=False)

    op.create_table(
        "validation_failures",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("integration_id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("action_id", sa.String(length=36), nullable=False),
        sa.Column("direction", sa.String(length=8), nullable=False),
        sa.Column("issue_code", sa.String(length=50), nullable=False),
        sa.Column("field_path", sa.String(length=255), nullable=False),
        sa.Column("expected_type", sa.String(length=50), nullable=True),
        sa.Column("received_type", sa.String(length=255), nullable=True),
        sa.Column("failure_count", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["action_id"], ["actions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_validation_failures_integration_id", "validation_failures", ["integration_id"], unique=False)
    op.create_index("ix_validation_failures_tenant_id", "validation_failures", ["tenant_id"], unique=False)
    op.create_index("ix_validation_failures_action_id", "validation_failures", ["action_id"], unique=False)

    op.create_table(
        "composite_tools",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("routing_mode", sa.String(length=32), nullable=False, server_default=sa.text("'rule_based'")),
        sa.Column("default_operation_id", sa.String(length=36), nullable=True),
        sa.Column("unified_input_schema_json", sa.JSON(), nullable=False),
        sa.Column("tool_description", sa.Text(), nullable=True),
        sa.Column("tool_success_template", sa.Text(), nullable=True),
        sa.Column("tool_error_template", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_composite_tools_tenant_id", "composite_tools", ["tenant_id"], unique=False)

    op.create_table(
        "composite_tool_operations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("composite_tool_id", sa.String(length=36), nullable=False),
        sa.Column("action_id", sa.String(length=36), nullable=False),
        sa.Column("operation_slug", sa.String(length=100), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["composite_tool_id"], ["composite_tools.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["action_id"], ["actions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_composite_tool_operations_composite_tool_id",
        "composite_tool_operations",
        ["composite_tool_id"],
        unique=False,
    )
    op.create_index("ix_composite_tool_operations_action_id", "composite_tool_operations", ["action_id"], unique=False)

    op.create_table(
        "agentic_tools",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("execution_mode", sa.String(length=32), nullable=False),
        sa.Column("tool_allocation_json", sa.JSON(), nullable=False),
        sa.Column("tool_description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_agentic_tools_tenant_id", "agentic_tools", ["tenant_id"], unique=False)

    op.create_table(
        "maintenance_proposals",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("integration_id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("action_id", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("severity", sa.String(length=16), nullable=False),
        sa.Column("source", sa.String(length=16), nullable=False, server_default=sa.text("'inference'")),
        sa.Column("current_input_schema_json", sa.JSON(), nullable=False),
        sa.Column("current_output_schema_json", sa.JSON(), nullable=False),
        sa.Column("proposed_input_schema_json", sa.JSON(), nullable=True),
        sa.Column("proposed_output_schema_json", sa.JSON(), nullable=True),
        sa.Column("changes_json", sa.JSON(), nullable=False),
        sa.Column("reasoning", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("drift_report_ids_json", sa.JSON(), nullable=False),
        sa.Column("affected_tools_json", sa.JSON(), nullable=True),
        sa.Column("description_suggestions_json", sa.JSON(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expired_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reverted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["action_id"], ["actions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_maintenance_proposals_action_id", "maintenance_proposals", ["action_id"], unique=False)
    op.create_index(
        "ix_maintenance_proposals_integration_status",
        "maintenance_proposals",
        ["integration_id", "status"],
        unique=False,
    )
    op.create_index(
        "ix_maintenance_proposals_tenant_status",
        "maintenance_proposals",
        ["tenant_id", "status"],
        unique=False,
    )
    op.create_index(
        "uq_maintenance_proposals_pending_action",
        "maintenance_proposals",
        ["action_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "scrape_jobs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("action_id", sa.String(length=36), nullable=True),
        sa.Column("specific_urls_json", sa.JSON(), nullable=False),
        sa.Column("wishlist_json", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default=sa.text("'pending'")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_scrape_jobs_tenant_id", "scrape_jobs", ["tenant_id"], unique=False)
    op.create_index("ix_scrape_jobs_action_id", "scrape_jobs", ["action_id"], unique=False)
    op.create_index("ix_scrape_jobs_status", "scrape_jobs", ["status"], unique=False)


def downgrade() -> None:
    op.drop_table("scrape_jobs")
    op.drop_index("uq_maintenance_proposals_pending_action", table_name="maintenance_proposals")
    op.drop_table("maintenance_proposals")
    op.drop_table("agentic_tools")
    op.drop_table("composite_tool_operations")
    op.drop_table("composite_tools")
    op.drop_table("validation_failures")
    op.drop_table("drift_reports")
    op.drop_table("actions")
    op.drop_table("integrations")
