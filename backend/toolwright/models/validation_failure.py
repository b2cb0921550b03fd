"""Validation failure statistics ORM model."""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from toolwright.models.base import Base, CreatedAtMixin, IdMixin, UpdatedAtMixin


class ValidationFailure(Base, IdMixin, CreatedAtMixin, UpdatedAtMixin):
    """Aggregated request/response validation failures for one fingerprint."""

    __tablename__ = "validation_failures"

    integration_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    tenant_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    action_id: Mapped[str] = mapped_column(
        ForeignKey("actions.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    direction: Mapped[str] = mapped_column(String(8), nullable=False)
    issue_code: Mapped[str] = mapped_column(String(50), nullable=False)
    field_path: Mapped[str] = mapped_column(String(255), nullable=False)
    expected_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    received_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    failure_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
