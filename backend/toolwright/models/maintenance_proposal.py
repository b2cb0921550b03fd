"""Maintenance proposal ORM model."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from toolwright.models.base import Base, CreatedAtMixin, IdMixin, UpdatedAtMixin


class MaintenanceProposal(Base, IdMixin, CreatedAtMixin, UpdatedAtMixin):
    """Reviewable bundle of inferred schema edits for one action."""

    __tablename__ = "maintenance_proposals"
    __table_args__ = (
        Index("ix_maintenance_proposals_integration_status", "integration_id", "status"),
        Index("ix_maintenance_proposals_tenant_status", "tenant_id", "status"),
        Index(
            "uq_maintenance_proposals_pending_action",
            "action_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    integration_id: Mapped[str] = mapped_column(String(36), nullable=False)
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action_id: Mapped[str] = mapped_column(
        ForeignKey("actions.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(16), default="pending", nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False)
    source: Mapped[str] = mapped_column(String(16), default="inference", nullable=False)
    current_input_schema_json: Mapped[dict[str, object]] = mapped_column(JSON, default=dict, nullable=False)
    current_output_schema_json: Mapped[dict[str, object]] = mapped_column(JSON, default=dict, nullable=False)
    proposed_input_schema_json: Mapped[dict[str, object] | None] = mapped_column(JSON, nullable=True)
    proposed_output_schema_json: Mapped[dict[str, object] | None] = mapped_column(JSON, nullable=True)
    changes_json: Mapped[list[dict[str, object]]] = mapped_column(JSON, default=list, nullable=False)
    reasoning: Mapped[str] = mapped_column(Text, default="", nullable=False)
    drift_report_ids_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    affected_tools_json: Mapped[list[dict[str, object]] | None] = mapped_column(JSON, nullable=True)
    description_suggestions_json: Mapped[list[dict[str, object]] | None] = mapped_column(JSON, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reverted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    applied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
