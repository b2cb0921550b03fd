"""Action ORM model."""

from sqlalchemy import JSON, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from toolwright.models.base import Base, CreatedAtMixin, IdMixin, UpdatedAtMixin


class Action(Base, IdMixin, CreatedAtMixin, UpdatedAtMixin):
    """Callable API action holding the live input/output JSON Schemas."""

    __tablename__ = "actions"

    integration_id: Mapped[str] = mapped_column(
        ForeignKey("integrations.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    tenant_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    http_method: Mapped[str | None] = mapped_column(String(16), nullable=True)
    endpoint_template: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    input_schema_json: Mapped[dict[str, object]] = mapped_column(JSON, default=dict, nullable=False)
    output_schema_json: Mapped[dict[str, object]] = mapped_column(JSON, default=dict, nullable=False)
    metadata_json: Mapped[dict[str, object]] = mapped_column(JSON, default=dict, nullable=False)
    tool_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tool_success_template: Mapped[str | None] = mapped_column(Text, nullable=True)
    tool_error_template: Mapped[str | None] = mapped_column(Text, nullable=True)
