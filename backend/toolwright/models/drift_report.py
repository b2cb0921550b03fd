"""Drift report ORM model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from toolwright.models.base import Base, CreatedAtMixin, IdMixin, UpdatedAtMixin


class DriftReport(Base, IdMixin, CreatedAtMixin, UpdatedAtMixin):
    """Observed violation of an action's stored schema at one field path."""

    __tablename__ = "drift_reports"

    integration_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    tenant_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    action_id: Mapped[str] = mapped_column(
        ForeignKey("actions.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    fingerprint: Mapped[str] = mapped_column(String(255), nullable=False)
    issue_code: Mapped[str] = mapped_column(String(50), nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="detected", index=True, nullable=False)
    field_path: Mapped[str] = mapped_column(String(255), nullable=False)
    expected_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    current_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    failure_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
